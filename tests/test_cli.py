"""Tests for the CLI module."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import pytest
import yaml
from click.testing import CliRunner

from stg.cli import main


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


def _write(text: str, suffix: str) -> Path:
    with NamedTemporaryFile(mode="w", suffix=suffix, delete=False) as f:
        f.write(text)
        return Path(f.name)


@pytest.fixture
def template_file(template_yaml: str) -> Path:
    """Create a temporary template file."""
    return _write(template_yaml, ".yaml")


@pytest.fixture
def graph_data() -> dict[str, Any]:
    """Graph of two friends, one of whom owns a pet."""
    person = {
        "birth": datetime(1990, 1, 1, tzinfo=timezone.utc),
        "merried": True,
        "age": 33.5,
        "money": 35,
        "things": ["thing"],
        "adresses": {"street 1": "house 1"},
    }
    return {
        "nodes": {
            "jora": {"type": "Person", "properties": {"name": "Jora", **person}},
            "vasya": {"type": "Person", "properties": {"name": "Vasya", **person}},
            "bobik": {"type": "Pet", "properties": {"nickname": "Bobik"}},
        },
        "connections": [
            {
                "main": "jora",
                "edge": {
                    "type": "friend",
                    "properties": {"since": datetime(2010, 5, 5, 10, tzinfo=timezone.utc)},
                },
                "subject": "vasya",
            },
            {"main": "vasya", "edge": {"type": "owns"}, "subject": "bobik"},
        ],
    }


class TestCheckCommand:
    """Tests for the check command."""

    def test_valid_template(self, cli_runner: CliRunner, template_file: Path) -> None:
        result = cli_runner.invoke(main, ["check", str(template_file)])

        assert result.exit_code == 0
        assert "Template is valid" in result.output

    def test_invalid_template(self, cli_runner: CliRunner) -> None:
        """Test that every template error is printed."""
        path = _write(
            "nodes:\n  A:\n    labels: [X, Y]\nedges:\n  e: {}\n", ".yaml"
        )
        result = cli_runner.invoke(main, ["check", str(path)])

        assert result.exit_code == 1
        assert "Template is invalid" in result.output
        assert 'undefined label "X"' in result.output
        assert 'undefined label "Y"' in result.output

    def test_missing_file(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(main, ["check", "/nonexistent/template.yaml"])
        assert result.exit_code != 0


class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_graph(
        self,
        cli_runner: CliRunner,
        template_file: Path,
        graph_data: dict[str, Any],
    ) -> None:
        data_file = _write(yaml.safe_dump(graph_data), ".yaml")
        result = cli_runner.invoke(
            main, ["validate", "-t", str(template_file), "-i", str(data_file)]
        )

        assert result.exit_code == 0, result.output
        assert "Graph is valid: 3 node(s)" in result.output

    def test_json_from_stdin(self, cli_runner: CliRunner, template_file: Path) -> None:
        data = {"nodes": {"bobik": {"type": "Pet", "properties": {"nickname": "Bobik"}}}}
        result = cli_runner.invoke(
            main,
            ["validate", "--template", str(template_file)],
            input=json.dumps(data),
        )

        assert result.exit_code == 0, result.output
        assert "1 node(s)" in result.output

    def test_invalid_graph(
        self,
        cli_runner: CliRunner,
        template_file: Path,
        graph_data: dict[str, Any],
    ) -> None:
        graph_data["connections"].append(
            {"main": "bobik", "edge": {"type": "owns"}, "subject": "jora"}
        )
        result = cli_runner.invoke(
            main,
            ["validate", "-t", str(template_file)],
            input=yaml.safe_dump(graph_data),
        )

        assert result.exit_code == 1
        assert "Graph is invalid" in result.output
        assert '"Pet" main node, "owns" edge and "Person" subject node' in result.output

    def test_undefined_node_reference(
        self,
        cli_runner: CliRunner,
        template_file: Path,
        graph_data: dict[str, Any],
    ) -> None:
        graph_data["connections"][0]["subject"] = "petya"
        result = cli_runner.invoke(
            main,
            ["validate", "-t", str(template_file)],
            input=yaml.safe_dump(graph_data),
        )

        assert result.exit_code == 1
        assert 'undefined subject node "petya"' in result.output

    @pytest.mark.parametrize(
        "data",
        [
            {"nodes": {"bobik": {"type": "Pet", "properties": ["nickname"]}}},
            {"nodes": ["bobik"]},
            {
                "nodes": {"bobik": {"type": "Pet"}},
                "connections": [
                    {"main": "bobik", "edge": {"type": "owns", "properties": 7}, "subject": "bobik"}
                ],
            },
        ],
    )
    def test_wrongly_shaped_data(
        self, cli_runner: CliRunner, template_file: Path, data: dict[str, Any]
    ) -> None:
        result = cli_runner.invoke(
            main, ["validate", "-t", str(template_file)], input=yaml.safe_dump(data)
        )

        assert result.exit_code == 1
        assert "Error loading graph data" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_malformed_data(self, cli_runner: CliRunner, template_file: Path) -> None:
        result = cli_runner.invoke(
            main, ["validate", "-t", str(template_file)], input="nodes: [oops"
        )

        assert result.exit_code == 1
        assert "Error parsing graph data" in result.output


class TestInitTemplateCommand:
    """Tests for the init-template command."""

    def test_output_is_a_valid_template(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(main, ["init-template"])
        assert result.exit_code == 0

        path = _write(result.output, ".yaml")
        check = cli_runner.invoke(main, ["check", str(path)])
        assert check.exit_code == 0, check.output

    def test_output_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        output = tmp_path / "template.yaml"
        result = cli_runner.invoke(main, ["init-template", "-o", str(output)])

        assert result.exit_code == 0
        assert output.exists()
        assert set(yaml.safe_load(output.read_text())) == {"labels", "nodes", "edges"}


class TestGroupOptions:
    """Tests for options of the command group."""

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "stg" in result.output

    def test_verbose(self, cli_runner: CliRunner, template_file: Path) -> None:
        result = cli_runner.invoke(main, ["--verbose", "check", str(template_file)])
        assert result.exit_code == 0
        assert "Template is valid" in result.output
