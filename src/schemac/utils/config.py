"""
Configuration constants to replace magic numbers throughout schemac
"""

import os
import tempfile

# Query feature naming: a query-profile field named query(<name>) declares
# the type of the rank feature query(<name>); <name> is ASCII word characters only
QUERY_FEATURE_PATTERN = r"query\(([A-Za-z0-9_]+)\)"

# Rank profiles every schema has, whether declared or not
DEFAULT_RANK_PROFILE = "default"
UNRANKED_RANK_PROFILE = "unranked"
BUILTIN_RANK_PROFILES = (DEFAULT_RANK_PROFILE, UNRANKED_RANK_PROFILE)

# Tensor type constants
TENSOR_TYPE_KEYWORD = "tensor"

# Parser configuration constants (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "schemac_tensor_type.cache")

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Debug dumps
DUMP_TYPES_ENV_VAR = "SCHEMAC_DUMP_TYPES"
DUMP_TYPES_DIR = "type_dumps"
DUMP_FILE_EXTENSION = ".json"

# Declarable field types (tensor types are parsed separately)
SCHEMA_PRIMITIVE_TYPES = frozenset({
    "string", "int", "long", "float", "double", "bool", "byte",
    "position", "predicate", "raw", "uri", "float16",
})
SCHEMA_COLLECTION_TYPES = ("array", "weightedset")
QUERY_PROFILE_PRIMITIVE_TYPES = frozenset({
    "string", "integer", "long", "float", "double", "boolean", "query-profile",
})
QUERY_PROFILE_REFERENCE_PREFIX = "query-profile:"
