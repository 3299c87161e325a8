"""
Built-in Rank Profiles Pass

Every schema has a `default` and an `unranked` rank profile whether or not the
application declares them. Registering them here, before any pass that works
on all rank profiles, makes them first-class profiles for those passes.
"""

import logging

from ..model.application import Application
from ..model.rank_profile import RankProfile
from ..utils.config import BUILTIN_RANK_PROFILES
from .base import BasePass, CompileContext

logger = logging.getLogger("schemac.passes.builtin_rank_profiles")


class BuiltinRankProfilesPass(BasePass):
    """Registers missing built-in rank profiles after the declared ones."""

    def run(self, application: Application, ctx: CompileContext) -> Application:
        schema_name = application.schema.name
        for name in BUILTIN_RANK_PROFILES:
            if application.rank_profiles.get(schema_name, name) is None:
                application.rank_profiles.add(RankProfile(name, schema_name))
                logger.debug(f"Registered built-in rank profile '{name}' for schema '{schema_name}'")
        return application
