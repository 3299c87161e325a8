"""
Rank Profile Type Settings Pass

Sets type settings on all rank profiles, so that rank-expression type checking
can resolve the dimensions of tensor-valued reads without re-scanning the
schema. Type settings come from two sources:

1. Tensor attributes: a concrete field whose own attribute (the attribute
   named like the field) has a tensor type gives `attribute(<field>)` that type.
2. Tensor query features: a query-profile type field named `query(<name>)`
   with a concrete tensor type gives the feature `query(<name>)` that type.

Every discovered type is written into every registered rank profile, whether
or not the profile reads it. Declarations that do not qualify (scalar
attributes, alias attributes, type-less tensor fields, non-tensor fields,
names not of the form `query(<name>)`) are skipped silently.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from ..model.application import Application
from ..model.query_profiles import FieldDescription, FieldTypeKind, QueryProfileTypeRegistry
from ..model.rank_profile import RankProfileRegistry, TypeEnvironment
from ..model.schema import Schema
from ..utils.config import QUERY_FEATURE_PATTERN
from .base import BasePass, CompileContext
from .builtin_rank_profiles import BuiltinRankProfilesPass

logger = logging.getLogger("schemac.passes.rank_profile_type_settings")

_QUERY_FEATURE = re.compile(QUERY_FEATURE_PATTERN)


class TypeEnvironmentKind(Enum):
    """Which type environment of a rank profile a setting goes into."""
    ATTRIBUTE = "attribute"
    QUERY_FEATURE = "query_feature"


def collect_attribute_types(schema: Schema) -> Iterator[Tuple[str, str]]:
    """(attribute name, tensor type) for every concrete field with a tensor attribute of its own."""
    for f in schema.concrete_fields():
        attribute = f.attribute_named(f.name)
        if attribute is None:
            continue
        tensor_type = attribute.tensor_type()
        if tensor_type is not None:
            yield attribute.name, str(tensor_type)


def query_feature_name(field_name: str) -> Optional[str]:
    """The <name> of a field named exactly `query(<name>)`, else None."""
    match = _QUERY_FEATURE.fullmatch(field_name)
    return match.group(1) if match else None


def _query_feature_type(description: FieldDescription) -> Optional[Tuple[str, str]]:
    field_type = description.type
    if field_type.kind is not FieldTypeKind.TENSOR or field_type.tensor_type is None:
        return None
    feature = query_feature_name(description.name)
    if feature is None:
        return None
    return feature, str(field_type.tensor_type)


def collect_query_feature_types(registry: QueryProfileTypeRegistry) -> Iterator[Tuple[str, str]]:
    """(feature name, tensor type) for every tensor query-profile field named `query(<name>)`."""
    for query_profile_type in registry.all_types():
        for description in query_profile_type.fields().values():
            setting = _query_feature_type(description)
            if setting is not None:
                yield setting


class RankProfileBroadcaster:
    """Writes type settings into every rank profile currently in a registry."""

    def __init__(self, rank_profiles: RankProfileRegistry):
        self.rank_profiles = rank_profiles
        self.writes: Dict[TypeEnvironmentKind, int] = {kind: 0 for kind in TypeEnvironmentKind}

    def broadcast(self, name: str, type: str, environment: TypeEnvironmentKind) -> None:
        for profile in self.rank_profiles.all_profiles():
            if environment is TypeEnvironmentKind.ATTRIBUTE:
                profile.set_attribute_type(name, type)
            else:
                profile.set_query_feature_type(name, type)
            self.writes[environment] += 1


@dataclass
class TypeSettingsSummary:
    """What one run of the pass discovered and how many environment writes it made."""
    attribute_types: TypeEnvironment = field(default_factory=dict)
    query_feature_types: TypeEnvironment = field(default_factory=dict)
    attribute_writes: int = 0
    query_feature_writes: int = 0


class RankProfileTypeSettingsPass(BasePass):
    """Propagates tensor attribute and query feature types into all rank profiles."""
    requires = [BuiltinRankProfilesPass]  # Built-in profiles must be registered first

    def run(self, application: Application, ctx: CompileContext) -> Application:
        broadcaster = RankProfileBroadcaster(application.rank_profiles)
        summary = TypeSettingsSummary()

        for name, tensor_type in collect_attribute_types(application.schema):
            logger.debug(f"attribute({name}) has type {tensor_type}")
            summary.attribute_types[name] = tensor_type
            broadcaster.broadcast(name, tensor_type, TypeEnvironmentKind.ATTRIBUTE)

        for name, tensor_type in collect_query_feature_types(application.query_profile_types):
            logger.debug(f"query({name}) has type {tensor_type}")
            summary.query_feature_types[name] = tensor_type
            broadcaster.broadcast(name, tensor_type, TypeEnvironmentKind.QUERY_FEATURE)

        summary.attribute_writes = broadcaster.writes[TypeEnvironmentKind.ATTRIBUTE]
        summary.query_feature_writes = broadcaster.writes[TypeEnvironmentKind.QUERY_FEATURE]
        ctx.set_analysis(RankProfileTypeSettingsPass, summary)

        logger.info(
            f"Type settings for schema '{application.schema.name}': "
            f"{len(summary.attribute_types)} tensor attributes, "
            f"{len(summary.query_feature_types)} tensor query features, "
            f"{len(application.rank_profiles)} rank profiles"
        )
        return application
