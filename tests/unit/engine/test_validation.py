# tests/unit/engine/test_validation.py
"""Tests for non-fatal graph diagnostics."""

from fieldflow.contracts.graph import CoalesceConfig, CoalesceRule, ConcatConfig, ConcatRule, StringOpConfig
from tests.fixtures.factories import make_edge, make_mapping, make_source, make_target, make_transform


def _codes(issues: list) -> list[str]:  # type: ignore[type-arg]
    return [issue.code for issue in issues]


class TestValidateGraph:
    def test_clean_graph(self) -> None:
        from fieldflow.engine.validation import validate_graph

        nodes = [make_source(), make_target()]

        assert validate_graph(nodes, [make_edge("src", "name", "tgt", "name")]) == []

    def test_duplicate_node_id(self) -> None:
        from fieldflow.engine.validation import validate_graph

        issues = validate_graph([make_source(), make_source()], [])

        assert _codes(issues) == ["duplicate_node_id"]
        assert issues[0].node_ids == ("src",)

    def test_dangling_edge(self) -> None:
        from fieldflow.engine.validation import validate_graph

        issues = validate_graph([make_target()], [make_edge("ghost", "x", "tgt", "name")])

        assert _codes(issues) == ["dangling_edge"]
        assert issues[0].node_ids == ("ghost",)

    def test_unresolved_handles(self) -> None:
        from fieldflow.engine.validation import validate_graph

        issues = validate_graph([make_source(), make_target()], [make_edge("src", "nope", "tgt", "zzz")])

        assert _codes(issues) == ["unresolved_source_handle", "unresolved_target_handle"]

    def test_target_as_input(self) -> None:
        from fieldflow.engine.validation import validate_graph

        issues = validate_graph([make_target("a"), make_target("b")], [make_edge("a", "name", "b", "name")])

        assert _codes(issues) == ["target_as_input"]

    def test_unbound_rule_handles(self) -> None:
        from fieldflow.engine.validation import validate_graph

        concat = make_transform("join", ConcatConfig(rules=(ConcatRule(id="r1"),)))
        coalesce = make_transform("pick", CoalesceConfig(rules=(CoalesceRule(id="r1"),)))
        edges = [
            make_edge("src", "name", "join", "r1"),
            make_edge("src", "name", "join", "r9"),
            make_edge("src", "name", "pick", "rule-r1"),
            make_edge("src", "name", "pick", "default"),
            make_edge("src", "name", "pick", "input"),
        ]

        issues = validate_graph([make_source(), concat, coalesce], edges)

        assert _codes(issues) == ["unbound_rule_handle", "unbound_rule_handle"]
        assert [issue.node_ids for issue in issues] == [("join",), ("pick",)]

    def test_single_input_transform_accepts_any_handle(self) -> None:
        from fieldflow.engine.validation import validate_graph

        nodes = [make_source(), make_transform("upper", StringOpConfig())]

        assert validate_graph(nodes, [make_edge("src", "name", "upper", "whatever")]) == []

    def test_cycle(self) -> None:
        from fieldflow.engine.validation import validate_graph

        nodes = [make_mapping("b"), make_mapping("a")]
        edges = [make_edge("a", "output", "b", "input"), make_edge("b", "output", "a", "input")]

        issues = validate_graph(nodes, edges)

        assert _codes(issues) == ["cycle"]
        assert issues[0].node_ids == ("a", "b")
        assert "a -> b -> a" in issues[0].message
