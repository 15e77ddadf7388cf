"""Entity type descriptors: how a kind of record maps onto a WMI class.

An EntityType names the WMI class (``element_name``), its key field or
fields, friendly aliases for awkward column names, and how to reach
the server. Options left unset fall back to the ``parent`` type when
they are read, so a shared base type can carry the address and
credentials::

    sms = EntityType("Sms", site="smsserver.sample.com",
                     namespace="root\\\\sms\\\\site_100", connector=connect)
    computer = EntityType("Computer", parent=sms,
                          element_name="SMS_R_System", key_fields="ResourceID",
                          aliases={"user": "lastlogonusername"})

    computer.first({"user": "jsmith"})
    computer.get(74939)

Descriptors are meant to be configured once, before first use, and only
read afterwards.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any

from wmi_records.aliases import FieldAliasTable
from wmi_records.conditions import build_query
from wmi_records.errors import (
    ConfigurationError,
    InvalidKeyError,
    NotFoundError,
    TransientKeyError,
)
from wmi_records.remote import Connection, ConnectionSettings, RemoteHandle
from wmi_records.resource import Resource
from wmi_records.values import quote_key

logger = logging.getLogger(__name__)

Connector = Callable[[ConnectionSettings], Connection]

CONNECTION_OPTIONS = frozenset({"site", "namespace", "user", "password", "connector"})
OPTIONS = CONNECTION_OPTIONS | {"element_name", "key_fields", "aliases"}

DEFAULT_KEY_FIELDS = ("id",)


class Scope(Enum):
    """How many records a find returns."""

    FIRST = "first"
    LAST = "last"
    ALL = "all"


FIRST = Scope.FIRST
LAST = Scope.LAST
ALL = Scope.ALL


def underscore(name: str) -> str:
    """Normalize a type name: ``Shop::ComputerBIOS`` becomes ``computer_bios``."""
    name = re.split(r"::|\.", name)[-1]
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.replace("-", "_").lower()


def _normalize_key_fields(value: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(value, str):
        fields: tuple[str, ...] = (value,)
    else:
        fields = tuple(str(v) for v in value)
    if not fields or any(not f for f in fields):
        raise ConfigurationError("key_fields must name at least one field")
    return fields


def _is_empty_key(key: Any) -> bool:
    if key is None or key == "":
        return True
    if isinstance(key, (list, tuple)):
        return len(key) == 0 or any(part is None or part == "" for part in key)
    return False


class EntityType:
    """Describes one kind of record and runs finds and saves for it."""

    def __init__(self, name: str, parent: EntityType | None = None, **options: Any) -> None:
        """Initialize an entity type.

        Args:
            name: Human-readable type name; its normalized form is the
                default element name.
            parent: Type to inherit unset options from.
            **options: Any of site, namespace, user, password,
                element_name, key_fields, aliases, connector.
        """
        self.name = name
        self.parent = parent
        self._options: dict[str, Any] = {}
        self._connection: Connection | None = None
        self._connected_with: tuple[ConnectionSettings, Connector] | None = None
        self._materialized = False
        self.configure(**options)

    # --- configuration ---

    def configure(self, **options: Any) -> None:
        """Set options on this type. Unknown option names are rejected."""
        unknown = set(options) - OPTIONS
        if unknown:
            raise ConfigurationError(f"Unknown option(s) for {self.name}: {', '.join(sorted(unknown))}")
        if "key_fields" in options:
            self._set_key_fields(options.pop("key_fields"))
        if "aliases" in options:
            aliases = options.pop("aliases")
            table = aliases if isinstance(aliases, FieldAliasTable) else FieldAliasTable(aliases)
            self._options["aliases"] = table
        if CONNECTION_OPTIONS & set(options):
            self._connection = None
        self._options.update(options)

    def _set_key_fields(self, value: str | Sequence[str]) -> None:
        fields = _normalize_key_fields(value)
        if self._materialized and fields != self.key_fields:
            raise ConfigurationError(
                f"Cannot change key fields of {self.name} after records have been loaded"
            )
        self._options["key_fields"] = fields

    def alias_field(self, friendly: str, underlying: str) -> None:
        """Make ``friendly`` an alias for the store field ``underlying``."""
        table = self._options.setdefault("aliases", FieldAliasTable())
        table.register(friendly, underlying)

    def _resolve(self, option: str, default: Any = None) -> Any:
        """Read an option from this type, then from its ancestors."""
        entity_type: EntityType | None = self
        while entity_type is not None:
            if option in entity_type._options:
                return entity_type._options[option]
            entity_type = entity_type.parent
        return default

    def defines(self, option: str) -> bool:
        return option in self._options

    @property
    def site(self) -> str | None:
        return self._resolve("site")

    @property
    def namespace(self) -> str | None:
        return self._resolve("namespace")

    @property
    def user(self) -> str | None:
        return self._resolve("user")

    @property
    def password(self) -> str | None:
        return self._resolve("password")

    @property
    def connector(self) -> Connector | None:
        return self._resolve("connector")

    @property
    def element_name(self) -> str:
        return self._resolve("element_name") or underscore(self.name)

    @property
    def key_fields(self) -> tuple[str, ...]:
        return self._resolve("key_fields", DEFAULT_KEY_FIELDS)

    @property
    def aliases(self) -> FieldAliasTable:
        """Aliases of this type layered over those of its ancestors."""
        inherited = self.parent.aliases if self.parent is not None else FieldAliasTable()
        local = self._options.get("aliases")
        return inherited.merged(local) if local is not None else inherited

    @property
    def settings(self) -> ConnectionSettings:
        return ConnectionSettings(
            site=self.site,
            namespace=self.namespace,
            user=self.user,
            password=self.password,
        )

    def mark_materialized(self) -> None:
        """Lock the key fields once a record of this type has been loaded.

        The lock covers every type from this one up to the type that
        supplies its key fields, since changing any of them would change
        this type's key.
        """
        entity_type: EntityType | None = self
        while entity_type is not None:
            entity_type._materialized = True
            if entity_type.defines("key_fields"):
                break
            entity_type = entity_type.parent

    # --- connection ---

    def connection(self, refresh: bool = False) -> Connection:
        """Return the connection for this type, opening it on first use.

        Types that set no connection options of their own share their
        parent's connection. A cached connection is replaced when the
        resolved settings or connector change, including options
        inherited from a parent.
        """
        if self.parent is not None and not (CONNECTION_OPTIONS & set(self._options)):
            return self.parent.connection(refresh)
        connector = self.connector
        if connector is None:
            raise ConfigurationError(f"No connector configured for {self.name}")
        settings = self.settings
        if refresh or self._connection is None or self._connected_with != (settings, connector):
            logger.debug("Connecting %s to %s (%s)", self.name, settings.site, settings.namespace)
            self._connection = connector(settings)
            self._connected_with = (settings, connector)
        return self._connection

    # --- keys ---

    def locator(self, key: Any) -> str:
        """Build the object path for a key value.

        Examples:
            >>> computer.locator(74939)
            'SMS_R_System.ResourceID=74939'
            >>> computer_bios.locator([40133, 74939])
            'SMS_G_System_PC_BIOS.GroupID=40133,ResourceID=74939'
        """
        key_fields = self.key_fields
        if len(key_fields) > 1:
            if isinstance(key, (str, bytes)) or not isinstance(key, Sequence):
                raise InvalidKeyError(
                    f"{self.name} has a composite key {list(key_fields)}; "
                    f"expected a sequence of {len(key_fields)} values"
                )
            if len(key) != len(key_fields):
                raise InvalidKeyError(
                    f"{self.name} expects {len(key_fields)} key values, got {len(key)}"
                )
            terms = [f"{name}={quote_key(value)}" for name, value in zip(key_fields, key)]
        else:
            if isinstance(key, (list, tuple)):
                raise InvalidKeyError(f"{self.name} has a single key field; got a sequence")
            terms = [f"{key_fields[0]}={quote_key(key)}"]
        return f"{self.element_name}.{','.join(terms)}"

    def collection_path(self) -> str:
        return self.element_name

    # --- finding ---

    def find(self, scope: Any, condition: Any = None) -> Any:
        """Find records.

        Args:
            scope: FIRST, LAST or ALL, or a key value.
            condition: Condition for FIRST/LAST/ALL; see
                ``wmi_records.conditions``. None selects every record.

        Returns:
            A list for ALL, a Resource or None for FIRST/LAST, and a
            Resource for a key.

        Raises:
            NotFoundError: If a key matches no record.
        """
        if scope is Scope.ALL:
            return self._find_every(condition)
        if scope is Scope.FIRST:
            records = self._find_every(condition)
            return records[0] if records else None
        if scope is Scope.LAST:
            records = self._find_every(condition)
            return records[-1] if records else None
        if condition is not None:
            raise TypeError("A condition cannot be combined with a key lookup")
        return self._find_single(scope)

    def all(self, condition: Any = None) -> list[Resource]:
        return self.find(ALL, condition)

    def first(self, condition: Any = None) -> Resource | None:
        return self.find(FIRST, condition)

    def last(self, condition: Any = None) -> Resource | None:
        return self.find(LAST, condition)

    def get(self, key: Any) -> Resource:
        return self._find_single(key)

    def build_query(self, condition: Any = None) -> str:
        return build_query(self.element_name, condition, self.aliases.resolve)

    def _find_every(self, condition: Any) -> list[Resource]:
        # Every match is fetched and FIRST/LAST select locally
        query = self.build_query(condition)
        logger.debug("Executing %s", query)
        handles = self.connection().execute_query(query)
        return [self.instantiate(handle) for handle in handles or []]

    def _find_single(self, key: Any) -> Resource:
        locator = self.locator(key)
        logger.debug("Fetching %s", locator)
        return self.instantiate(self.connection().fetch(locator))

    def instantiate(self, handle: RemoteHandle) -> Resource:
        return Resource(self, handle)

    def exists(self, key: Any) -> bool:
        """True if a record with this key exists."""
        if _is_empty_key(key):
            return False
        try:
            self._find_single(key)
        except NotFoundError:
            return False
        return True

    # --- lifecycle ---

    def new(self, fields: Mapping[str, Any] | None = None, **values: Any) -> Resource:
        """Build an unsaved record, seeding it with the given field values."""
        handle = self.connection().spawn(self.element_name)
        resource = self.instantiate(handle)
        seed = dict(fields or {})
        seed.update(values)
        for name, value in seed.items():
            resource.set(name, value)
        return resource

    def create(self, fields: Mapping[str, Any] | None = None, **values: Any) -> Resource:
        """Build a record and save it immediately."""
        return self.new(fields, **values).save()

    def save(self, resource: Resource) -> None:
        if resource.is_new:
            locator = resource.handle.put()
            logger.debug("Created %s", locator)
            resource.proxy.rebind(self.connection().fetch(locator))
        else:
            logger.debug("Updating %s", resource.to_param())
            resource.handle.put()

    def destroy(self, resource: Resource) -> None:
        logger.debug("Deleting %s %s", self.element_name, resource.to_param())
        resource.handle.delete()

    def reload(self, resource: Resource) -> None:
        if resource.is_new:
            resource.proxy.reload()
        else:
            resource.proxy.reload(self.connection().fetch(self.locator(resource.key)))

    def delete(self, key: Any) -> None:
        """Delete the record with this key.

        Raises:
            NotFoundError: If no record has the key.
        """
        self._find_single(key).destroy()

    def __repr__(self) -> str:
        return f"EntityType({self.name!r}, element_name={self.element_name!r}, key_fields={list(self.key_fields)!r})"


class TransientEntityType(EntityType):
    """A keyless type for objects that are built and passed around but never
    looked up by key, such as method parameters and embedded objects.

    Saving writes the cached fields through the handle without committing.
    """

    @property
    def key_fields(self) -> tuple[str, ...]:
        return ()

    def _set_key_fields(self, value: str | Sequence[str]) -> None:
        raise TransientKeyError(f"Cannot assign key fields to transient type {self.name}")

    def locator(self, key: Any) -> str:
        raise TransientKeyError(f"Transient type {self.name} has no object path")

    def _find_every(self, condition: Any) -> list[Resource]:
        return []

    def _find_single(self, key: Any) -> Resource:
        raise NotFoundError(f"Transient type {self.name} cannot be found by key")

    def exists(self, key: Any) -> bool:
        return False

    def delete(self, key: Any) -> None:
        raise TransientKeyError(f"Cannot delete transient type {self.name} by key")

    def save(self, resource: Resource) -> None:
        resource.proxy.flush()

    def reload(self, resource: Resource) -> None:
        resource.proxy.reload()
