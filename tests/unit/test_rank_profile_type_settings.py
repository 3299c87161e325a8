"""
Tests for Rank Profile Type Settings Pass
=========================================

Tensor attribute types and tensor query feature types must end up in the type
environments of every rank profile; everything else is skipped silently.
"""

import pytest

from schemac.model.rank_profile import RankProfile
from schemac.passes.base import CompileContext
from schemac.passes.rank_profile_type_settings import (
    RankProfileBroadcaster,
    RankProfileTypeSettingsPass,
    TypeEnvironmentKind,
    TypeSettingsSummary,
    collect_attribute_types,
    collect_query_feature_types,
    query_feature_name,
)
from tests.test_utils import (
    make_application,
    primitive_field_type,
    query_profile_type,
    scalar_field,
    tensor_field,
    tensor_field_type,
)


def run_pass(application, ctx=None):
    ctx = ctx or CompileContext()
    RankProfileTypeSettingsPass().run(application, ctx)
    return ctx


class CountingRankProfile(RankProfile):
    """Rank profile that counts environment writes."""

    def __init__(self, name, schema_name):
        super().__init__(name, schema_name)
        self.attribute_writes = 0
        self.query_feature_writes = 0

    def set_attribute_type(self, name, type):
        self.attribute_writes += 1
        super().set_attribute_type(name, type)

    def set_query_feature_type(self, name, type):
        self.query_feature_writes += 1
        super().set_query_feature_type(name, type)


class TestAttributeTypes:
    """Tensor attributes on concrete fields"""

    def test_tensor_attribute_broadcast_to_all_profiles(self):
        """doc_vector: tensor(x[128]) reaches both profiles"""
        application = make_application(
            fields=[tensor_field("doc_vector", "tensor(x[128])")],
            profiles=["default", "bm25"],
        )
        run_pass(application)
        for profile in application.rank_profiles.all_profiles():
            assert profile.attribute_types == {"doc_vector": "tensor(x[128])"}

    def test_scalar_attribute_skipped(self):
        application = make_application(fields=[scalar_field("title")])
        run_pass(application)
        assert application.rank_profiles.get("test", "default").attribute_types == {}

    def test_field_without_attribute_skipped(self):
        application = make_application(fields=[tensor_field("embedding", "tensor(x[4])", attributes=[])])
        run_pass(application)
        assert application.rank_profiles.get("test", "default").attribute_types == {}

    def test_alias_attribute_ignored(self):
        """Only the attribute named like its field counts"""
        application = make_application(
            fields=[tensor_field("embedding", "tensor(x[4])", attributes=["embedding_alias"])]
        )
        assert list(collect_attribute_types(application.schema)) == []

    def test_own_attribute_used_when_aliases_exist(self):
        application = make_application(
            fields=[tensor_field("embedding", "tensor(x[4])", attributes=["embedding_alias", "embedding"])]
        )
        assert list(collect_attribute_types(application.schema)) == [("embedding", "tensor(x[4])")]

    def test_extra_fields_are_concrete(self):
        application = make_application(
            fields=[tensor_field("a", "tensor(x[2])")],
            extra_fields=[tensor_field("b", "tensor<float>(y{})")],
        )
        assert list(collect_attribute_types(application.schema)) == [
            ("a", "tensor(x[2])"),
            ("b", "tensor<float>(y{})"),
        ]

    def test_type_string_is_canonical(self):
        """Dimensions are written sorted, as the tensor type prints them"""
        application = make_application(fields=[tensor_field("m", "tensor<float>(y[3], x{})")])
        run_pass(application)
        assert application.rank_profiles.get("test", "default").attribute_type("m") == "tensor<float>(x{},y[3])"

    def test_unreferenced_attribute_still_broadcast(self):
        """Environments are supersets: profiles get every tensor attribute"""
        application = make_application(
            fields=[tensor_field("a", "tensor(x[2])"), tensor_field("b", "tensor(y[3])")],
            profiles=["only_reads_a", "reads_nothing"],
        )
        run_pass(application)
        for profile in application.rank_profiles.all_profiles():
            assert set(profile.attribute_types) == {"a", "b"}


class TestQueryFeatureName:
    """Whole-name match of query(<ASCII word chars>)"""

    @pytest.mark.parametrize("name,expected", [
        ("query(x)", "x"),
        ("query(user_embedding)", "user_embedding"),
        ("query(v2)", "v2"),
        ("query(_)", "_"),
    ])
    def test_matching_names(self, name, expected):
        assert query_feature_name(name) == expected

    @pytest.mark.parametrize("name", [
        "fooquery(x)",
        "prefix_query(x)",
        "embedding_query(x)",
        "query(x)bar",
        "query(x)_suffix",
        "query()",
        "query(x",
        "query(a.b)",
        "query(a b)",
        "query(x)\n",
        "query(é)",
        "query(x²)",
        "query(имя)",
        "query(١)",
        "user_embedding",
    ])
    def test_non_matching_names(self, name):
        assert query_feature_name(name) is None


class TestQueryFeatureTypes:
    """Tensor query-profile fields named query(<name>)"""

    def test_query_feature_broadcast(self):
        application = make_application(
            profiles=["default", "semantic"],
            query_profile_types=[query_profile_type("root", [
                ("query(user_embedding)", tensor_field_type("tensor(x[64])")),
            ])],
        )
        run_pass(application)
        for profile in application.rank_profiles.all_profiles():
            assert profile.query_feature_types == {"user_embedding": "tensor(x[64])"}
            assert profile.attribute_types == {}

    def test_pattern_mismatch_skipped(self):
        application = make_application(
            query_profile_types=[query_profile_type("root", [
                ("embedding_query(x)", tensor_field_type("tensor(x[64])")),
            ])],
        )
        run_pass(application)
        assert application.rank_profiles.get("test", "default").query_feature_types == {}

    def test_non_ascii_feature_name_skipped(self):
        registry = make_application(
            query_profile_types=[query_profile_type("root", [
                ("query(имя)", tensor_field_type("tensor(x[2])")),
                ("query(name)", tensor_field_type("tensor(x[3])")),
            ])],
        ).query_profile_types
        assert list(collect_query_feature_types(registry)) == [("name", "tensor(x[3])")]

    def test_typeless_tensor_skipped(self):
        registry = make_application(
            query_profile_types=[query_profile_type("root", [("query(q)", tensor_field_type(None))])],
        ).query_profile_types
        assert list(collect_query_feature_types(registry)) == []

    def test_non_tensor_field_skipped(self):
        registry = make_application(
            query_profile_types=[query_profile_type("root", [("query(q)", primitive_field_type("string"))])],
        ).query_profile_types
        assert list(collect_query_feature_types(registry)) == []

    def test_all_query_profile_types_scanned(self):
        registry = make_application(
            query_profile_types=[
                query_profile_type("a", [("query(x)", tensor_field_type("tensor(d[1])"))]),
                query_profile_type("b", [
                    ("ranking.profile", primitive_field_type("string")),
                    ("query(y)", tensor_field_type("tensor(d{})")),
                ]),
            ],
        ).query_profile_types
        assert list(collect_query_feature_types(registry)) == [
            ("x", "tensor(d[1])"),
            ("y", "tensor(d{})"),
        ]

    def test_last_declaration_wins(self):
        """No conflict detection: a later declaration of the same feature overwrites"""
        application = make_application(
            query_profile_types=[
                query_profile_type("a", [("query(q)", tensor_field_type("tensor(x[1])"))]),
                query_profile_type("b", [("query(q)", tensor_field_type("tensor(x[2])"))]),
            ],
        )
        run_pass(application)
        assert application.rank_profiles.get("test", "default").query_feature_type("q") == "tensor(x[2])"


class TestEnvironmentsAreSeparate:

    def test_same_name_in_both_environments(self):
        application = make_application(
            fields=[tensor_field("v", "tensor(x[3])")],
            query_profile_types=[query_profile_type("root", [("query(v)", tensor_field_type("tensor(y[5])"))])],
        )
        run_pass(application)
        profile = application.rank_profiles.get("test", "default")
        assert profile.attribute_types == {"v": "tensor(x[3])"}
        assert profile.query_feature_types == {"v": "tensor(y[5])"}


class TestBroadcast:
    """Broadcast is total: N profiles x K names writes per phase"""

    def test_write_counts(self):
        application = make_application(
            profiles=[],
            fields=[
                tensor_field("a", "tensor(x[2])"),
                tensor_field("b", "tensor(x[3])"),
                scalar_field("c"),
            ],
            query_profile_types=[query_profile_type("root", [
                ("query(q1)", tensor_field_type("tensor(x[1])")),
                ("query(q2)", tensor_field_type("tensor(x[1])")),
                ("query(q3)", tensor_field_type("tensor(x[1])")),
                ("notquery(q4)", tensor_field_type("tensor(x[1])")),
            ])],
        )
        profiles = [CountingRankProfile(name, "test") for name in ("p1", "p2", "p3")]
        for profile in profiles:
            application.rank_profiles.add(profile)

        ctx = run_pass(application)

        for profile in profiles:
            assert profile.attribute_writes == 2
            assert profile.query_feature_writes == 3
        summary = ctx.get_analysis(RankProfileTypeSettingsPass)
        assert summary.attribute_writes == 3 * 2
        assert summary.query_feature_writes == 3 * 3

    def test_broadcaster_selects_environment(self):
        application = make_application(profiles=["p1", "p2"])
        broadcaster = RankProfileBroadcaster(application.rank_profiles)
        broadcaster.broadcast("v", "tensor(x[1])", TypeEnvironmentKind.QUERY_FEATURE)
        for profile in application.rank_profiles.all_profiles():
            assert profile.query_feature_types == {"v": "tensor(x[1])"}
            assert profile.attribute_types == {}
        assert broadcaster.writes[TypeEnvironmentKind.QUERY_FEATURE] == 2
        assert broadcaster.writes[TypeEnvironmentKind.ATTRIBUTE] == 0

    def test_broadcaster_overwrites(self):
        application = make_application(profiles=["p1"])
        broadcaster = RankProfileBroadcaster(application.rank_profiles)
        broadcaster.broadcast("v", "tensor(x[1])", TypeEnvironmentKind.ATTRIBUTE)
        broadcaster.broadcast("v", "tensor(x[9])", TypeEnvironmentKind.ATTRIBUTE)
        assert application.rank_profiles.get("test", "p1").attribute_types == {"v": "tensor(x[9])"}

    def test_no_profiles_no_writes(self):
        application = make_application(profiles=[], fields=[tensor_field("a", "tensor(x[2])")])
        summary = run_pass(application).get_analysis(RankProfileTypeSettingsPass)
        assert summary.attribute_types == {"a": "tensor(x[2])"}
        assert summary.attribute_writes == 0

    def test_profiles_registered_later_not_covered(self):
        application = make_application(fields=[tensor_field("a", "tensor(x[2])")])
        run_pass(application)
        late = application.rank_profiles.add(RankProfile("late", "test"))
        assert late.attribute_types == {}


class TestPassProperties:

    def _application(self):
        return make_application(
            fields=[tensor_field("doc_vector", "tensor(x[128])"), scalar_field("title")],
            profiles=["default", "bm25"],
            query_profile_types=[query_profile_type("root", [
                ("query(user_embedding)", tensor_field_type("tensor(x[64])")),
            ])],
        )

    def test_idempotent(self):
        application = self._application()
        run_pass(application)
        first = [(p.attribute_types.copy(), p.query_feature_types.copy())
                 for p in application.rank_profiles.all_profiles()]
        run_pass(application)
        second = [(p.attribute_types, p.query_feature_types)
                  for p in application.rank_profiles.all_profiles()]
        assert first == second

    def test_summary_stored_on_context(self):
        ctx = run_pass(self._application())
        summary = ctx.get_analysis(RankProfileTypeSettingsPass)
        assert isinstance(summary, TypeSettingsSummary)
        assert summary.attribute_types == {"doc_vector": "tensor(x[128])"}
        assert summary.query_feature_types == {"user_embedding": "tensor(x[64])"}

    def test_no_errors_reported(self):
        application = make_application(
            fields=[scalar_field("title", attribute=False)],
            query_profile_types=[query_profile_type("root", [
                ("query()", tensor_field_type("tensor(x[1])")),
                ("query(t)", tensor_field_type(None)),
            ])],
        )
        ctx = run_pass(application)
        assert not ctx.reporter.has_errors()

    def test_summary_logged(self, caplog):
        with caplog.at_level("INFO", logger="schemac.passes.rank_profile_type_settings"):
            run_pass(self._application())
        assert "1 tensor attributes, 1 tensor query features, 2 rank profiles" in caplog.text
