"""Load entity types from a JSON configuration document.

Example document::

    {
      "types": {
        "Sms": {"site": "smsserver.sample.com", "namespace": "root\\\\sms\\\\site_100",
                "user": "test_user", "password": "p@55w0rd"},
        "Computer": {"parent": "Sms", "element_name": "SMS_R_System",
                     "key": "ResourceID",
                     "aliases": {"user": "lastlogonusername"}},
        "ComputerBios": {"parent": "Sms", "element_name": "SMS_G_System_PC_BIOS",
                         "key": ["GroupID", "ResourceID"]}
      }
    }
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from wmi_records.entity import Connector, EntityType, TransientEntityType
from wmi_records.errors import ConfigurationError

# Keys accepted in a type entry, mapped to EntityType option names
_OPTION_KEYS = {
    "site": "site",
    "namespace": "namespace",
    "user": "user",
    "password": "password",
    "element_name": "element_name",
    "key": "key_fields",
    "key_fields": "key_fields",
    "aliases": "aliases",
}
_STRUCTURAL_KEYS = {"parent", "transient"}


def _read(source: Path | str | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(source, Mapping):
        return source
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with open(path) as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e


def load_entity_types(
    source: Path | str | Mapping[str, Any], connector: Connector | None = None
) -> dict[str, EntityType]:
    """Build entity types from a configuration document.

    Args:
        source: Path to a JSON file, or an already-parsed document.
        connector: Connector given to every type without a parent.

    Returns:
        Entity types by name, in document order, parents linked.
    """
    document = _read(source)
    if not isinstance(document, Mapping):
        raise ConfigurationError("Configuration must be a JSON object with a 'types' object")
    types_data = document.get("types")
    if not isinstance(types_data, Mapping):
        raise ConfigurationError("Configuration must contain a 'types' object")

    for name, entry in types_data.items():
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"Type '{name}' must be an object")
        unknown = set(entry) - set(_OPTION_KEYS) - _STRUCTURAL_KEYS
        if unknown:
            raise ConfigurationError(f"Unknown option(s) for type '{name}': {', '.join(sorted(unknown))}")
        parent = entry.get("parent")
        if parent is not None and parent not in types_data:
            raise ConfigurationError(f"Type '{name}' has unknown parent '{parent}'")

    result: dict[str, EntityType] = {}
    resolving: set[str] = set()

    def build(name: str) -> EntityType:
        if name in result:
            return result[name]
        if name in resolving:
            raise ConfigurationError(f"Cyclic parent chain through type '{name}'")
        resolving.add(name)
        entry = types_data[name]
        parent = build(entry["parent"]) if entry.get("parent") is not None else None
        options = {_OPTION_KEYS[key]: value for key, value in entry.items() if key in _OPTION_KEYS}
        if parent is None and connector is not None:
            options["connector"] = connector
        cls = TransientEntityType if entry.get("transient") else EntityType
        entity_type = cls(name, parent=parent, **options)
        resolving.discard(name)
        result[name] = entity_type
        return entity_type

    for name in types_data:
        build(name)

    return {name: result[name] for name in types_data}
