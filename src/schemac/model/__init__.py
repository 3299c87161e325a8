"""
Application model: schema, query-profile types and rank profiles.
"""

from .schema import Schema, Field, Attribute
from .query_profiles import (
    FieldTypeKind, FieldType, TensorFieldType, PrimitiveFieldType,
    FieldDescription, QueryProfileType, QueryProfileTypeRegistry,
)
from .rank_profile import RankProfile, RankProfileRegistry, TypeEnvironment
from .application import Application
