"""Command-line tool for inspecting entity mappings.

Usage:
    wmi-records -c types.json types
    wmi-records -c types.json query Computer --where user=jsmith
    wmi-records -c types.json query Computer --raw "Name LIKE ?" --value "LAB%"
    wmi-records -c types.json locator ComputerBios 40133 74939
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from wmi_records.conditions import Raw
from wmi_records.config import load_entity_types
from wmi_records.entity import EntityType
from wmi_records.errors import RecordError


def parse_value(text: str) -> Any:
    """Read a command-line value as JSON when possible, else as a string."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _parse_where(items: list[str]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for item in items:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected FIELD=VALUE, got '{item}'")
        fields[name] = parse_value(value)
    return fields


def _get_type(types: dict[str, EntityType], name: str) -> EntityType:
    entity_type = types.get(name)
    if entity_type is None:
        raise KeyError(f"Type '{name}' not found")
    return entity_type


def run(args: argparse.Namespace) -> int:
    types = load_entity_types(args.config)

    if args.action == "types":
        for name, entity_type in types.items():
            keys = ", ".join(entity_type.key_fields) or "-"
            print(f"{name}: {entity_type.element_name} (key: {keys})")
            for friendly, underlying in entity_type.aliases.items():
                print(f"    {friendly} -> {underlying}")
        return 0

    entity_type = _get_type(types, args.type)

    if args.action == "query":
        if args.raw is not None and args.where:
            raise ValueError("Use either --where or --raw, not both")
        if args.raw is not None:
            condition: Any = Raw(args.raw, tuple(parse_value(v) for v in args.value))
        elif args.where:
            condition = _parse_where(args.where)
        else:
            condition = None
        print(entity_type.build_query(condition))
        return 0

    if args.action == "locator":
        values = [parse_value(v) for v in args.key]
        key = values[0] if len(values) == 1 else values
        print(entity_type.locator(key))
        return 0

    raise ValueError(f"Unknown action {args.action}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Inspect how entity types map onto WMI classes"
    )
    arg_parser.add_argument(
        "-c", "--config",
        type=Path,
        required=True,
        help="Path to the JSON entity type configuration",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    subparsers = arg_parser.add_subparsers(dest="action", required=True)

    subparsers.add_parser("types", help="List configured entity types")

    query_parser = subparsers.add_parser("query", help="Print the WQL a find would issue")
    query_parser.add_argument("type", help="Entity type name")
    query_parser.add_argument(
        "-w", "--where",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Field condition (repeatable)",
    )
    query_parser.add_argument(
        "-r", "--raw",
        help="Raw condition template with ? markers",
    )
    query_parser.add_argument(
        "--value",
        action="append",
        default=[],
        help="Value for the next ? marker (repeatable)",
    )

    locator_parser = subparsers.add_parser("locator", help="Print the object path for a key")
    locator_parser.add_argument("type", help="Entity type name")
    locator_parser.add_argument("key", nargs="+", help="Key value(s), in key field order")

    args = arg_parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        return run(args)
    except (RecordError, KeyError, ValueError, FileNotFoundError) as e:
        message = e.args[0] if isinstance(e, KeyError) and e.args else e
        print(f"Error: {message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
