# tests/unit/cli/test_cli.py
"""Tests for the fieldflow CLI.

JSON documents are written with --output and read back from disk so the
assertions do not depend on how the runner interleaves stdout and stderr.
"""

import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

runner = CliRunner()

GRAPH: dict[str, Any] = {
    "nodes": [
        {
            "id": "src",
            "type": "source",
            "data": {
                "fields": [{"id": "name", "name": "name"}, {"id": "country", "name": "country"}],
                "data": [{"name": " ada ", "country": "NO"}],
            },
        },
        {
            "id": "trim",
            "type": "transform",
            "data": {"config": {"transformKind": "string_op", "operation": "trim"}},
        },
        {"id": "table", "type": "conversionMapping", "data": {"mappings": [{"from": "NO", "to": "Norway"}]}},
        {
            "id": "tgt",
            "type": "target",
            "data": {"fields": [{"id": "Name", "name": "Name"}, {"id": "Country", "name": "Country"}]},
        },
    ],
    "edges": [
        {"id": "e1", "source": "src", "sourceHandle": "name", "target": "trim", "targetHandle": "input"},
        {"id": "e2", "source": "trim", "sourceHandle": "output", "target": "tgt", "targetHandle": "Name"},
        {"id": "e3", "source": "src", "sourceHandle": "country", "target": "table", "targetHandle": "input"},
        {"id": "e4", "source": "table", "sourceHandle": "output", "target": "tgt", "targetHandle": "Country"},
    ],
}


@pytest.fixture
def graph_file(tmp_path: Path) -> Path:
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(GRAPH))
    return path


def _invoke(*args: str) -> Any:
    from fieldflow.cli import app

    return runner.invoke(app, ["--no-dotenv", *args])


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_version_flag(self) -> None:
        """--version shows version info."""
        from fieldflow.cli import app

        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "fieldflow version" in result.stdout

    def test_help_lists_commands(self) -> None:
        from fieldflow.cli import app

        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("resolve", "compile", "export", "import", "replay", "validate"):
            assert command in result.stdout


class TestResolveCommand:
    def test_writes_resolved_graph(self, graph_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "resolved.json"

        result = _invoke("resolve", str(graph_file), "--output", str(out))

        assert result.exit_code == 0, result.output
        document = json.loads(out.read_text())
        target = next(node for node in document["nodes"] if node["id"] == "tgt")
        assert target["data"]["data"] == [{"Name": "ada", "Country": "Norway"}]

    def test_yaml_input(self, tmp_path: Path) -> None:
        import yaml

        graph = tmp_path / "graph.yaml"
        graph.write_text(yaml.safe_dump(GRAPH))
        out = tmp_path / "resolved.json"

        result = _invoke("resolve", str(graph), "-o", str(out))

        assert result.exit_code == 0, result.output
        assert "nodes" in json.loads(out.read_text())

    def test_passthrough_policy_from_settings(self, tmp_path: Path) -> None:
        graph = json.loads(json.dumps(GRAPH))
        graph["nodes"][0]["data"]["data"] = [{"name": "x", "country": "DK"}]
        graph_path = tmp_path / "graph.json"
        graph_path.write_text(json.dumps(graph))
        settings = tmp_path / "settings.yaml"
        settings.write_text("engine:\n  unmapped_policy: passthrough\n")
        out = tmp_path / "resolved.json"

        result = _invoke("--settings", str(settings), "resolve", str(graph_path), "-o", str(out))

        assert result.exit_code == 0, result.output
        target = next(node for node in json.loads(out.read_text())["nodes"] if node["id"] == "tgt")
        assert target["data"]["data"][0]["Country"] == "DK"

    def test_missing_file(self, tmp_path: Path) -> None:
        result = _invoke("resolve", str(tmp_path / "absent.json"))

        assert result.exit_code == 1

    def test_invalid_json(self, tmp_path: Path) -> None:
        graph = tmp_path / "broken.json"
        graph.write_text("{not json")

        result = _invoke("resolve", str(graph))

        assert result.exit_code == 1

    def test_invalid_graph_document(self, tmp_path: Path) -> None:
        graph = tmp_path / "bad.json"
        graph.write_text(json.dumps({"nodes": [{"id": "x", "type": "sticky-note"}], "edges": []}))

        result = _invoke("resolve", str(graph))

        assert result.exit_code == 1

    def test_missing_settings_file(self, graph_file: Path, tmp_path: Path) -> None:
        result = _invoke("--settings", str(tmp_path / "absent.yaml"), "resolve", str(graph_file))

        assert result.exit_code == 1


class TestCompileCommand:
    def test_steps_written(self, graph_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "steps.json"

        result = _invoke("compile", str(graph_file), "-o", str(out))

        assert result.exit_code == 0, result.output
        steps = json.loads(out.read_text())
        assert [step["stepId"] for step in steps] == ["step_1", "step_2"]
        assert [step["type"] for step in steps] == ["transform", "conversion_mapping"]


class TestExportImportReplay:
    def test_export_then_import(self, graph_file: Path, tmp_path: Path) -> None:
        exported = tmp_path / "mapping.json"
        restored = tmp_path / "restored.json"

        export_result = _invoke("export", str(graph_file), "--name", "Customers", "-o", str(exported))
        import_result = _invoke("import", str(exported), "-o", str(restored))

        assert export_result.exit_code == 0, export_result.output
        assert import_result.exit_code == 0, import_result.output
        configuration = json.loads(exported.read_text())
        assert configuration["name"] == "Customers"
        assert len(configuration["execution"]["steps"]) == 2
        graph = json.loads(restored.read_text())
        assert sorted(node["id"] for node in graph["nodes"]) == ["src", "table", "tgt", "trim"]
        assert len(graph["edges"]) == 4

    def test_replay_with_record(self, graph_file: Path, tmp_path: Path) -> None:
        exported = tmp_path / "mapping.json"
        record = tmp_path / "record.json"
        record.write_text(json.dumps({"name": "  grace ", "country": "NO"}))
        out = tmp_path / "replayed.json"
        _invoke("export", str(graph_file), "-o", str(exported))

        result = _invoke("replay", str(exported), "--input", str(record), "-o", str(out))

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text()) == {"tgt": {"Name": "grace", "Country": "Norway"}}

    def test_replay_samples(self, graph_file: Path, tmp_path: Path) -> None:
        exported = tmp_path / "mapping.json"
        out = tmp_path / "replayed.json"
        _invoke("export", str(graph_file), "-o", str(exported))

        result = _invoke("replay", str(exported), "-o", str(out))

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text()) == {"tgt": {"Name": "ada", "Country": "Norway"}}

    def test_replay_rejects_non_object_record(self, graph_file: Path, tmp_path: Path) -> None:
        exported = tmp_path / "mapping.json"
        record = tmp_path / "record.json"
        record.write_text("[1, 2]")
        _invoke("export", str(graph_file), "-o", str(exported))

        result = _invoke("replay", str(exported), "--input", str(record))

        assert result.exit_code == 1

    def test_import_rejects_graph_document(self, graph_file: Path) -> None:
        result = _invoke("import", str(graph_file))

        assert result.exit_code == 1


class TestValidateCommand:
    def test_valid_graph(self, graph_file: Path) -> None:
        result = _invoke("validate", str(graph_file))

        assert result.exit_code == 0
        assert "Graph is valid: 4 nodes, 4 edges" in result.stdout

    def test_issues_exit_nonzero(self, tmp_path: Path) -> None:
        graph = json.loads(json.dumps(GRAPH))
        graph["edges"].append({"id": "e5", "source": "ghost", "target": "tgt", "targetHandle": "Name"})
        path = tmp_path / "graph.json"
        path.write_text(json.dumps(graph))

        result = _invoke("validate", str(path))

        assert result.exit_code == 1
        assert "dangling_edge" in result.stdout
