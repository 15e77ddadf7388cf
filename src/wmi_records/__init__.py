"""WMI Records - map WMI classes onto Python entity types."""

from wmi_records.aliases import FieldAliasTable
from wmi_records.conditions import Fielded, Raw, build_query, translate
from wmi_records.config import load_entity_types
from wmi_records.entity import ALL, FIRST, LAST, EntityType, Scope, TransientEntityType
from wmi_records.errors import (
    ConfigurationError,
    InvalidKeyError,
    NotFoundError,
    RecordError,
    RemoteError,
    TransientKeyError,
    TranslationError,
    UnknownFieldError,
    parse_ole_error,
    remote_error,
)
from wmi_records.memory import MemoryConnection, MemoryStore
from wmi_records.predicates import Comparison, Conjunction, Negation
from wmi_records.proxy import AttributeProxy
from wmi_records.remote import Connection, ConnectionSettings, RemoteHandle
from wmi_records.resource import Resource
from wmi_records.values import from_wmi_date, quote_key, quote_value, to_wmi_date

__all__ = [
    # Main API
    "EntityType",
    "TransientEntityType",
    "Resource",
    "Scope",
    "FIRST",
    "LAST",
    "ALL",
    "load_entity_types",
    # Conditions
    "Raw",
    "Fielded",
    "Comparison",
    "Conjunction",
    "Negation",
    "translate",
    "build_query",
    # Field access
    "AttributeProxy",
    "FieldAliasTable",
    # Values
    "quote_value",
    "quote_key",
    "to_wmi_date",
    "from_wmi_date",
    # Remote interface
    "Connection",
    "ConnectionSettings",
    "RemoteHandle",
    "MemoryStore",
    "MemoryConnection",
    # Errors
    "RecordError",
    "ConfigurationError",
    "TranslationError",
    "InvalidKeyError",
    "TransientKeyError",
    "UnknownFieldError",
    "RemoteError",
    "NotFoundError",
    "remote_error",
    "parse_ole_error",
]

__version__ = "0.1.0"
