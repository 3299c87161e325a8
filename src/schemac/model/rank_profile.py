"""
Rank Profiles

A rank profile is a named ranking configuration of a schema. Besides its rank
expressions (owned by later stages) it keeps a type environment: the tensor
types of attributes and query features that its expressions may read.
"""

from typing import Dict, List, Optional, Tuple

from typing_extensions import TypeAlias

from ..shared.errors import SchemacImplementationError

# name -> tensor type string, e.g. "doc_vector" -> "tensor(x[128])"
TypeEnvironment: TypeAlias = Dict[str, str]


class RankProfile:
    """Rank profile with its attribute-type and query-feature-type environments."""

    def __init__(self, name: str, schema_name: str):
        self.name = name
        self.schema_name = schema_name
        self.attribute_types: TypeEnvironment = {}
        self.query_feature_types: TypeEnvironment = {}

    def set_attribute_type(self, name: str, type: str) -> None:
        self.attribute_types[name] = type

    def set_query_feature_type(self, name: str, type: str) -> None:
        self.query_feature_types[name] = type

    def attribute_type(self, name: str) -> Optional[str]:
        return self.attribute_types.get(name)

    def query_feature_type(self, name: str) -> Optional[str]:
        return self.query_feature_types.get(name)

    def __repr__(self) -> str:
        return f"RankProfile({self.schema_name}.{self.name})"


class RankProfileRegistry:
    """
    All rank profiles of an application, keyed by (schema name, profile name).

    Iteration order is registration order.
    """

    def __init__(self):
        self._profiles: Dict[Tuple[str, str], RankProfile] = {}

    def add(self, profile: RankProfile) -> RankProfile:
        key = (profile.schema_name, profile.name)
        if key in self._profiles:
            raise SchemacImplementationError(
                f"rank profile '{profile.name}' is already registered for schema '{profile.schema_name}'"
            )
        self._profiles[key] = profile
        return profile

    def get(self, schema_name: str, name: str) -> Optional[RankProfile]:
        return self._profiles.get((schema_name, name))

    def profiles_for(self, schema_name: str) -> List[RankProfile]:
        return [p for (schema, _), p in self._profiles.items() if schema == schema_name]

    def all_profiles(self) -> List[RankProfile]:
        return list(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)
