"""Command-line interface for graph templates."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import click
import yaml

from stg import __version__
from stg.common.exceptions import TemplateException
from stg.common.logging import StandardLogger
from stg.graph.entities import Node, new_edge, new_node, new_triplet
from stg.graph.graph import SimpleGraph, new_graph
from stg.parser.template_parser import TemplateParser
from stg.template.template import Template
from stg.validation import validate


@click.group()
@click.version_option(version=__version__, prog_name="stg")
@click.option("--verbose", "-v", is_flag=True, help="Log template building progress.")
def main(verbose: bool) -> None:
    """stg - Validate property graphs against YAML templates."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_template(template_file: Path) -> Template:
    parser = TemplateParser(logger=StandardLogger())
    with template_file.open("rb") as f:
        return parser.parse(f)


@main.command()
@click.argument(
    "template_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def check(template_file: Path) -> None:
    """Parse a template file and report every error in it."""
    try:
        _load_template(template_file)
    except TemplateException as e:
        click.echo(f"Template is invalid:\n{e}", err=True)
        sys.exit(1)
    click.echo("Template is valid")


@main.command(name="validate")
@click.option(
    "--template", "-t",
    "template_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="YAML template file to validate against.",
)
@click.option(
    "--input", "-i",
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML or JSON file with graph data. If not provided, reads from stdin.",
)
def validate_command(template_file: Path, input_file: Path | None) -> None:
    """Validate graph data against a template."""
    try:
        template = _load_template(template_file)
    except TemplateException as e:
        click.echo(f"Template is invalid:\n{e}", err=True)
        sys.exit(1)

    if input_file:
        content = input_file.read_text(encoding="utf-8")
    else:
        content = sys.stdin.read()

    try:
        graph = _load_graph(yaml.safe_load(content))
    except yaml.YAMLError as e:
        click.echo(f"Error parsing graph data: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Error loading graph data: {e}", err=True)
        sys.exit(1)

    ok, error = validate(template, graph)
    if not ok:
        click.echo(f"Graph is invalid: {error}", err=True)
        sys.exit(1)
    click.echo(f"Graph is valid: {len(graph)} node(s)")


def _load_graph(data: Any) -> SimpleGraph:
    """
    Build a graph from loaded data of the form::

        nodes:
          <id>: {type: <node type>, properties: {...}}
        connections:
          - {main: <id>, edge: {type: <edge type>, properties: {...}}, subject: <id>}
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("graph data must be a mapping")

    raw_nodes = data.get("nodes") or {}
    if not isinstance(raw_nodes, dict):
        raise ValueError("graph nodes must be a mapping")

    nodes: dict[str, Node] = {}
    for node_id, node in raw_nodes.items():
        if not isinstance(node, dict) or "type" not in node:
            raise ValueError(f"node \"{node_id}\" must have a type")
        nodes[str(node_id)] = new_node(
            str(node["type"]), _properties(node, f"node \"{node_id}\"")
        )

    triplets = []
    for i, conn in enumerate(data.get("connections") or [], 1):
        if not isinstance(conn, dict):
            raise ValueError(f"connection {i} must be a mapping")
        edge = conn.get("edge")
        if not isinstance(edge, dict) or "type" not in edge:
            raise ValueError(f"connection {i} must have an edge with a type")
        ends = []
        for end in ("main", "subject"):
            node_id = str(conn.get(end))
            if node_id not in nodes:
                raise ValueError(
                    f"connection {i} refers to undefined {end} node \"{node_id}\""
                )
            ends.append(nodes[node_id])
        triplets.append(
            new_triplet(
                ends[0],
                ends[1],
                new_edge(str(edge["type"]), _properties(edge, f"connection {i} edge")),
            )
        )

    return new_graph(nodes.values(), *triplets)


def _properties(entity: dict[str, Any], what: str) -> dict[str, Any]:
    properties = entity.get("properties")
    if properties is None:
        return {}
    if not isinstance(properties, dict):
        raise ValueError(f"{what} properties must be a mapping")
    return properties


SAMPLE_TEMPLATE: dict[str, Any] = {
    "labels": {
        "Human": {
            "properties": {
                "name": {"type": "string", "restrictions": {"regexps": ["^[A-Z]"]}},
            },
            "connections": {
                "Human": [{"edge": "knows", "ratio": {"min": 0, "max": -1}}],
            },
        },
    },
    "nodes": {
        "Person": {
            "labels": ["Human"],
            "properties": {
                "age": {"type": "int", "restrictions": {"regexps": ["^\\d{1,3}$"]}},
                "birth": {"type": "datetime"},
                "things": {"type": "array-string"},
                "addresses": {
                    "type": "map-string-string",
                    "restrictions": {"key_regexps": ["^street"]},
                },
            },
            "connections": {
                "Pet": [{"edge": "owns", "ratio": {"min": 0, "max": 3}}],
            },
        },
        "Pet": {
            "properties": {
                "nickname": {"type": "string"},
                "kind": {
                    "type": "string",
                    "restrictions": {"values": ["cat", "dog"]},
                },
            },
        },
    },
    "edges": {
        "knows": {"properties": {"since": {"type": "datetime"}}},
        "owns": {"properties": {}},
    },
}


@main.command()
@click.option(
    "--output", "-o",
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file for the sample template. If not provided, writes to stdout.",
)
def init_template(output_file: Path | None) -> None:
    """Generate a sample template file."""
    result = yaml.safe_dump(SAMPLE_TEMPLATE, sort_keys=False)

    if output_file:
        output_file.write_text(result, encoding="utf-8")
        click.echo(f"Template written to {output_file}")
    else:
        click.echo(result)


if __name__ == "__main__":
    main()
