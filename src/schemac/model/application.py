"""
Application

The unit a compilation works on: one schema plus the registries its rank
profiles and query-profile types live in. Passes receive it explicitly.
"""

from dataclasses import dataclass, field

from .schema import Schema
from .rank_profile import RankProfileRegistry
from .query_profiles import QueryProfileTypeRegistry


@dataclass
class Application:
    schema: Schema
    rank_profiles: RankProfileRegistry = field(default_factory=RankProfileRegistry)
    query_profile_types: QueryProfileTypeRegistry = field(default_factory=QueryProfileTypeRegistry)
