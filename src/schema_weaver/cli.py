"""
Command line entry point.

Usage:
    schema-weaver infer tables.json [--config config/inference.yaml] [--min-confidence 0.6] [-o snapshot.json]
    schema-weaver build state.json [--template-id TEMPLATE] [-o output.json]

infer reads a JSON list of table schemas (or {"tables": [...]}) and writes a
schema snapshot. build reads persisted state
({"snapshot": ..., "templates": [...], "mappingByTemplate": {...}}) and writes
the combined output payload.
"""

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import structlog

from schema_weaver.core.combined_output import OutputPreconditionError, build_combined_output
from schema_weaver.core.config_loader import load_inference_config
from schema_weaver.core.relationship_detector import InferenceSettings
from schema_weaver.core.relationship_inference import build_snapshot
from schema_weaver.core.schema import MappingEntry, SchemaSnapshot, TableSchema, Template
from schema_weaver.logging_config import configure_logging

logger = structlog.get_logger()


def _read_json(path: Path) -> Any:
    with open(path) as f:
        return json.load(f)


def _write_json(data: Any, output: Path | None) -> None:
    text = json.dumps(data, indent=2, default=str)
    if output is None:
        print(text)
    else:
        output.write_text(text + "\n")


def _load_settings(args: argparse.Namespace) -> InferenceSettings:
    # config/inference.yaml (or --config) plus environment overrides
    settings = InferenceSettings.from_config(load_inference_config(args.config))
    if args.min_confidence is not None:
        settings = replace(settings, min_confidence=args.min_confidence)
    return settings


def run_infer(args: argparse.Namespace) -> int:
    payload = _read_json(args.tables)
    raw_tables = payload.get("tables", []) if isinstance(payload, dict) else payload
    tables = [TableSchema.from_dict(table) for table in raw_tables]

    snapshot = build_snapshot(tables, settings=_load_settings(args))
    _write_json(snapshot.to_dict(), args.output)
    return 0


def parse_state(
    state: dict[str, Any],
) -> tuple[SchemaSnapshot | None, list[Template], dict[str, dict[str, MappingEntry | None]]]:
    """Split persisted state into snapshot, templates and per-template mappings."""
    snapshot = SchemaSnapshot.from_dict(state["snapshot"]) if state.get("snapshot") else None
    templates = [Template.from_dict(t) for t in state.get("templates") or []]
    mapping_by_template = {
        template_id: {field_id: MappingEntry.from_dict(entry) for field_id, entry in (fields or {}).items()}
        for template_id, fields in (state.get("mappingByTemplate") or {}).items()
    }
    return snapshot, templates, mapping_by_template


def run_build(args: argparse.Namespace) -> int:
    snapshot, templates, mapping_by_template = parse_state(_read_json(args.state))
    try:
        payload = build_combined_output(snapshot, templates, mapping_by_template, template_id=args.template_id)
    except OutputPreconditionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _write_json(payload.to_dict(), args.output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schema-weaver",
        description="Infer table relationships and assemble combined template output",
    )
    parser.add_argument("--log-level", default=None, help="Root log level (default: from config/logging.yaml)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    infer = subparsers.add_parser("infer", help="Infer relationships and write a schema snapshot")
    infer.add_argument("tables", type=Path, help="JSON file with table schemas")
    infer.add_argument("--config", type=Path, default=None, help="Inference YAML config")
    infer.add_argument("--min-confidence", type=float, default=None, help="Override the confidence floor")
    infer.add_argument("-o", "--output", type=Path, default=None, help="Write JSON here instead of stdout")
    infer.set_defaults(handler=run_infer)

    build = subparsers.add_parser("build", help="Build combined output from persisted state")
    build.add_argument("state", type=Path, help="JSON file with snapshot, templates and mappings")
    build.add_argument("--template-id", default=None, help="Build only this template")
    build.add_argument("-o", "--output", type=Path, default=None, help="Write JSON here instead of stdout")
    build.set_defaults(handler=run_build)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    # stdout carries the JSON result
    configure_logging(args.log_level.upper() if args.log_level else None, stream=sys.stderr)
    logger.debug("cli_command", command=args.command)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
