"""
Type Settings Serialization
===========================

Dumps the type environments of every rank profile of an application, for the
command line and for debugging dumps:

    {
      "schema": "music",
      "rank_profiles": {
        "default": {
          "attribute_types": {"doc_vector": "tensor(x[128])"},
          "query_feature_types": {"user_embedding": "tensor(x[64])"}
        }
      }
    }

Environment entries are sorted by name so that dumps are stable across runs;
rank profiles keep registration order.
"""

import json
from typing import Any, Dict

from .application import Application
from .rank_profile import RankProfile, TypeEnvironment


def _environment_to_dict(environment: TypeEnvironment) -> Dict[str, str]:
    return {name: environment[name] for name in sorted(environment)}


def rank_profile_to_dict(profile: RankProfile) -> Dict[str, Any]:
    return {
        "attribute_types": _environment_to_dict(profile.attribute_types),
        "query_feature_types": _environment_to_dict(profile.query_feature_types),
    }


def type_settings_to_dict(application: Application) -> Dict[str, Any]:
    schema_name = application.schema.name
    return {
        "schema": schema_name,
        "rank_profiles": {
            p.name: rank_profile_to_dict(p)
            for p in application.rank_profiles.profiles_for(schema_name)
        },
    }


def serialize_type_settings(application: Application, pretty: bool = True) -> str:
    """
    Serialize the type environments of all rank profiles of the application's schema.

    Args:
        application: Compiled application
        pretty: Indented output (default True). Set False for compact single-line.
    """
    data = type_settings_to_dict(application)
    if pretty:
        return json.dumps(data, indent=2)
    return json.dumps(data, separators=(",", ":"))
