"""
Application Loader

Builds an Application (schema, rank profiles, query-profile types) from a
YAML application description. JSON documents are accepted as well, being a
subset of YAML.

    schema:
      name: music
      fields:
        - {name: doc_vector, type: "tensor(x[128])", attribute: true}
        - {name: title, type: string, attributes: [title, title_alias]}
      extra_fields: []
    rank_profiles:
      - name: bm25
    query_profile_types:
      - id: root
        fields:
          - {name: "query(user_embedding)", type: "tensor(x[64])"}

Problems are reported to the ErrorReporter and loading continues with the next
entry, so that one run reports as many errors as possible.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import yaml

from ..model.application import Application
from ..model.schema import Attribute, Field, Schema
from ..model.rank_profile import RankProfile
from ..model.query_profiles import (
    FieldDescription, FieldType, PrimitiveFieldType, QueryProfileType, TensorFieldType,
)
from ..shared.errors import ErrorReporter, SchemacSourceError
from ..shared.source_location import SourceLocation
from ..shared.tensor_type import TensorType
from ..utils.config import (
    QUERY_PROFILE_PRIMITIVE_TYPES,
    QUERY_PROFILE_REFERENCE_PREFIX,
    SCHEMA_COLLECTION_TYPES,
    SCHEMA_PRIMITIVE_TYPES,
    TENSOR_TYPE_KEYWORD,
)
from .tensor_type_parser import TensorTypeParseError, TensorTypeParser, looks_like_tensor_type

logger = logging.getLogger("schemac.frontend.application_loader")

_COLLECTION_TYPE = re.compile(r"(\w+)<\s*(\w+)\s*>")


class ApplicationLoader:
    """Loads one application description per call to load()."""

    def __init__(self, reporter: ErrorReporter, tensor_parser: Optional[TensorTypeParser] = None):
        self.reporter = reporter
        self.tensor_parser = tensor_parser or TensorTypeParser()
        self._source = ""
        self._source_file = "<unknown>"

    def load(self, source: str, source_file: str = "application.yaml") -> Optional[Application]:
        """
        Load an application description.

        Returns None when the document cannot be used at all (malformed, or no
        schema); otherwise an Application, possibly with errors reported.
        """
        self._source = source
        self._source_file = source_file

        try:
            document = yaml.safe_load(source)
        except yaml.YAMLError as e:
            self._report_malformed(e)
            return None

        if not isinstance(document, dict):
            self.reporter.report_error(
                "application description must be a mapping",
                SourceLocation(source_file, 1, 1),
                code="E0002",
                help="expected top-level keys: schema, rank_profiles, query_profile_types",
            )
            return None

        try:
            schema = self._load_schema(document.get("schema"))
        except SchemacSourceError as e:
            self.reporter.report(e.to_error())
            return None

        application = Application(schema)
        self._load_rank_profiles(application, document.get("rank_profiles") or [])
        self._load_query_profile_types(application, document.get("query_profile_types") or [])

        logger.debug(
            f"Loaded schema '{schema.name}': {len(schema.concrete_fields())} fields, "
            f"{len(application.rank_profiles)} rank profiles, "
            f"{len(application.query_profile_types)} query profile types"
        )
        return application

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _load_schema(self, section: Any) -> Schema:
        if not isinstance(section, dict):
            raise SchemacSourceError(
                "missing 'schema' section",
                SourceLocation(self._source_file, 1, 1),
                error_code="E0002",
            )
        name = section.get("name")
        if not isinstance(name, str) or not name:
            raise SchemacSourceError(
                "schema must have a name",
                self._locate("schema"),
                error_code="E0002",
                note="at schema.name",
            )

        schema = Schema(name)
        seen: Dict[str, str] = {}
        for key, target in (("fields", schema.document_fields), ("extra_fields", schema.extra_fields)):
            for index, entry in enumerate(_as_list(section.get(key))):
                path = f"schema.{key}[{index}]"
                try:
                    field = self._load_field(entry, path)
                except SchemacSourceError as e:
                    self.reporter.report(e.to_error())
                    continue
                if field.name in seen:
                    self.reporter.report_error(
                        f"duplicate field '{field.name}'",
                        None,
                        code="E0201",
                        note=f"at {path}, first declared at {seen[field.name]}",
                    )
                    continue
                seen[field.name] = path
                target.append(field)
        return schema

    def _load_field(self, entry: Any, path: str) -> Field:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise SchemacSourceError("field must be a mapping with a name", None, "E0002", note=f"at {path}")
        name = entry["name"]
        data_type = entry.get("type")
        if not isinstance(data_type, str):
            raise SchemacSourceError(f"field '{name}' has no type", None, "E0002", note=f"at {path}.type")

        tensor_type: Optional[TensorType] = None
        if looks_like_tensor_type(data_type):
            tensor_type = self._parse_tensor_type(data_type, f"{path}.type")
        elif not _is_schema_type(data_type):
            raise SchemacSourceError(
                f"unknown field type '{data_type}'",
                self._locate(data_type),
                "E0102",
                note=f"at {path}.type",
            )

        field = Field(name, str(tensor_type) if tensor_type is not None else data_type)
        attribute_names: List[str] = []
        if entry.get("attribute"):
            attribute_names.append(name)
        attribute_names.extend(str(a) for a in _as_list(entry.get("attributes")))
        for attribute_name in attribute_names:
            field.add_attribute(Attribute(attribute_name, tensor_type))
        return field

    # ------------------------------------------------------------------
    # Rank profiles
    # ------------------------------------------------------------------

    def _load_rank_profiles(self, application: Application, entries: Any) -> None:
        schema_name = application.schema.name
        for index, entry in enumerate(_as_list(entries)):
            path = f"rank_profiles[{index}]"
            name = entry.get("name") if isinstance(entry, dict) else entry
            if not isinstance(name, str) or not name:
                self.reporter.report_error("rank profile must have a name", None, code="E0002", note=f"at {path}")
                continue
            if application.rank_profiles.get(schema_name, name) is not None:
                self.reporter.report_error(
                    f"duplicate rank profile '{name}' in schema '{schema_name}'",
                    None,
                    code="E0202",
                    note=f"at {path}",
                )
                continue
            application.rank_profiles.add(RankProfile(name, schema_name))

    # ------------------------------------------------------------------
    # Query profile types
    # ------------------------------------------------------------------

    def _load_query_profile_types(self, application: Application, entries: Any) -> None:
        registry = application.query_profile_types
        for index, entry in enumerate(_as_list(entries)):
            path = f"query_profile_types[{index}]"
            if not isinstance(entry, dict) or not isinstance(entry.get("id"), str):
                self.reporter.report_error(
                    "query profile type must be a mapping with an id", None, code="E0002", note=f"at {path}"
                )
                continue
            type_id = entry["id"]
            if type_id in registry:
                self.reporter.report_error(
                    f"duplicate query profile type '{type_id}'", None, code="E0203", note=f"at {path}"
                )
                continue

            query_profile_type = QueryProfileType(type_id)
            seen: Dict[str, str] = {}
            for field_index, field_entry in enumerate(_as_list(entry.get("fields"))):
                field_path = f"{path}.fields[{field_index}]"
                try:
                    description = self._load_field_description(field_entry, field_path)
                except SchemacSourceError as e:
                    self.reporter.report(e.to_error())
                    continue
                if description.name in seen:
                    self.reporter.report_error(
                        f"duplicate field '{description.name}' in query profile type '{type_id}'",
                        None,
                        code="E0201",
                        note=f"at {field_path}, first declared at {seen[description.name]}",
                    )
                    continue
                seen[description.name] = field_path
                query_profile_type.add_field(description)
            registry.register(query_profile_type)

    def _load_field_description(self, entry: Any, path: str) -> FieldDescription:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise SchemacSourceError("field must be a mapping with a name", None, "E0002", note=f"at {path}")
        type_name = entry.get("type")
        if not isinstance(type_name, str):
            raise SchemacSourceError(
                f"field '{entry['name']}' has no type", None, "E0002", note=f"at {path}.type"
            )
        return FieldDescription(entry["name"], self._query_profile_field_type(type_name.strip(), path))

    def _query_profile_field_type(self, type_name: str, path: str) -> FieldType:
        if type_name == TENSOR_TYPE_KEYWORD:
            return TensorFieldType(None)
        if looks_like_tensor_type(type_name):
            return TensorFieldType(self._parse_tensor_type(type_name, f"{path}.type"))
        if type_name in QUERY_PROFILE_PRIMITIVE_TYPES or type_name.startswith(QUERY_PROFILE_REFERENCE_PREFIX):
            return PrimitiveFieldType(type_name)
        raise SchemacSourceError(
            f"unknown field type '{type_name}'", self._locate(type_name), "E0102", note=f"at {path}.type"
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _parse_tensor_type(self, text: str, path: str) -> TensorType:
        try:
            return self.tensor_parser.parse(text)
        except TensorTypeParseError as e:
            location = self._locate(text, offset=e.column - 1)
            raise SchemacSourceError(
                f"invalid tensor type '{text}'",
                location,
                "E0101",
                note=f"at {path}",
                label=e.message,
            ) from e

    def _locate(self, needle: str, offset: int = 0) -> Optional[SourceLocation]:
        """Location of the first occurrence of needle in the source, shifted by offset characters."""
        position = self._source.find(needle)
        if position < 0:
            return None
        position += min(offset, len(needle))
        line = self._source.count("\n", 0, position) + 1
        column = position - (self._source.rfind("\n", 0, position) + 1) + 1
        return SourceLocation(self._source_file, line, column)

    def _report_malformed(self, e: yaml.YAMLError) -> None:
        mark = getattr(e, "problem_mark", None)
        location = SourceLocation(self._source_file, mark.line + 1, mark.column + 1) if mark else None
        problem = getattr(e, "problem", None) or str(e)
        self.reporter.report_error(
            f"malformed application description: {problem}",
            location,
            code="E0001",
            help="application descriptions are YAML (or JSON) documents",
        )


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _is_schema_type(type_name: str) -> bool:
    if type_name in SCHEMA_PRIMITIVE_TYPES:
        return True
    match = _COLLECTION_TYPE.fullmatch(type_name)
    return bool(match) and match.group(1) in SCHEMA_COLLECTION_TYPES and match.group(2) in SCHEMA_PRIMITIVE_TYPES
