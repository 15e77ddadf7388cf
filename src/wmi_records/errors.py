"""Exception types raised by wmi_records."""

from __future__ import annotations

import re

# WBEM_E_NOT_FOUND
NOT_FOUND_CODE = "80041002"

_OLE_ERROR_RE = re.compile(r"OLE error code:([0-9A-Fa-f]*) in (\w*)\n\s*(.*)\n")


class RecordError(Exception):
    """Base class for all wmi_records errors."""


class ConfigurationError(RecordError):
    """An entity type is configured inconsistently."""


class TranslationError(RecordError, ValueError):
    """A condition or key could not be rendered into the query dialect."""


class InvalidKeyError(RecordError, ValueError):
    """A key value does not match the shape of the entity type's key fields."""


class TransientKeyError(RecordError):
    """A key-based operation was attempted on a transient entity type."""


class UnknownFieldError(RecordError, AttributeError):
    """A field name is neither materialized, aliased, nor known to the handle."""

    def __init__(self, name: str, element_name: str | None = None) -> None:
        where = f" on {element_name}" if element_name else ""
        super().__init__(f"Unknown field '{name}'{where}")
        # Must follow AttributeError.__init__, which resets name
        self.name = name
        self.element_name = element_name


class RemoteError(RecordError):
    """The remote store reported a failure.

    Attributes:
        code: Native error code as upper-case hex text (e.g. "80041010").
        message: The store's description of the failure.
        source: Component that reported the failure, when known.
    """

    def __init__(self, code: str, message: str = "", source: str | None = None) -> None:
        self.code = code
        self.message = message
        self.source = source
        super().__init__(code, message)

    def __str__(self) -> str:
        text = f"Failed with {self.code}"
        if self.source:
            text += f" in {self.source}"
        if self.message:
            text += f": {self.message}"
        return text


class NotFoundError(RemoteError):
    """No remote object matches a key-based fetch or delete."""

    def __init__(self, message: str = "Not found", source: str | None = None) -> None:
        super().__init__(NOT_FOUND_CODE, message, source)


def normalize_code(code: int | str) -> str:
    """Render a native error code as eight upper-case hex digits."""
    if isinstance(code, int):
        return f"{code & 0xFFFFFFFF:08X}"
    text = code.strip()
    if text.lower().startswith("0x"):
        text = text[2:]
    return text.upper()


def remote_error(code: int | str, message: str = "", source: str | None = None) -> RemoteError:
    """Build the error for a native store failure.

    The not-found code maps to NotFoundError; every other code is kept
    intact on a plain RemoteError.
    """
    normalized = normalize_code(code)
    if normalized == NOT_FOUND_CODE:
        return NotFoundError(message or "Not found", source)
    return RemoteError(normalized, message, source)


def parse_ole_error(text: str) -> RemoteError | None:
    """Extract a RemoteError from a COM bridge's error text.

    Returns None when the text does not carry an OLE error code.
    """
    match = _OLE_ERROR_RE.search(text)
    if match is None or not match.group(1):
        return None
    code, source, message = match.groups()
    return remote_error(code, message.strip(), source or None)
