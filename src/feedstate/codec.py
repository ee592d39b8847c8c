"""
Per-type conversion between stored column values and JSON scalars.

Stored values are what the database hands back: ``str`` for text columns,
``int`` for numeric, boolean and datetime columns, ``bytes`` for blobs, and
``None`` for NULL. JSON values are what ``json`` produces/consumes.
"""
import base64
import binascii
from datetime import datetime, timezone
from typing import Any, Mapping
from feedstate.errors import MalformedValue, UnsupportedType
from feedstate.schema import TypeTag


class _Omit:
    """Marker for a column that never appears in a backup document."""

    def __repr__(self):
        return "OMIT"

    def __bool__(self):
        return False


OMIT = _Omit()

_TEXT_TYPES = (TypeTag.TEXT, TypeTag.TEXT_UNIQUE)
_INT_TYPES = (TypeTag.INTEGER, TypeTag.SMALL_INT, TypeTag.BOOLEAN)


def _check_tag(tag) -> TypeTag:
    if not isinstance(tag, TypeTag):
        raise UnsupportedType(f"Unknown column type {tag!r}")
    return tag


def _to_epoch(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def encode(tag: TypeTag, value: Any, column: str = "?") -> Any:
    """Convert a stored value to its JSON form, or ``OMIT`` for primary keys."""
    tag = _check_tag(tag)

    if tag is TypeTag.PRIMARY_KEY:
        return OMIT
    if value is None:
        return None

    if tag in _TEXT_TYPES:
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedValue(column, f"text is not valid UTF-8: {e}") from e
        return str(value)

    if tag in _INT_TYPES:
        if isinstance(value, (bool, int)):
            return int(value)
        raise MalformedValue(column, f"expected an integer, got {type(value).__name__}")

    if tag is TypeTag.DATETIME:
        if isinstance(value, datetime):
            return _to_epoch(value)
        if isinstance(value, (bool, int)):
            return int(value)
        raise MalformedValue(column, f"expected an epoch value, got {type(value).__name__}")

    if tag is TypeTag.BLOB:
        if isinstance(value, memoryview):
            value = value.tobytes()
        if not isinstance(value, (bytes, bytearray)):
            raise MalformedValue(column, f"expected bytes, got {type(value).__name__}")
        return base64.b64encode(bytes(value)).decode("ascii")

    raise UnsupportedType(f"Unknown column type {tag!r}")


def _json_int(value: Any, column: str) -> int:
    # bool is an int subclass; JSON true/false is not a valid 0/1 column value
    if isinstance(value, bool):
        raise MalformedValue(column, "expected a number, got a JSON boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise MalformedValue(column, f"expected an integer, got {value!r}")


def decode(tag: TypeTag, obj: Mapping[str, Any], column: str) -> Any:
    """Pull ``column`` out of a JSON row object as a stored value.

    Returns ``OMIT`` for primary keys, which are always regenerated.
    """
    tag = _check_tag(tag)

    if tag is TypeTag.PRIMARY_KEY:
        return OMIT

    if tag in _TEXT_TYPES:
        value = obj.get(column)
        if value is None or isinstance(value, str):
            return value
        raise MalformedValue(column, f"expected a string, got {value!r}")

    if tag in _INT_TYPES or tag is TypeTag.DATETIME:
        value = obj.get(column)
        if value is None:
            return None
        return _json_int(value, column)

    if tag is TypeTag.BLOB:
        if column not in obj:
            raise MalformedValue(column, "blob column missing from row")
        value = obj[column]
        if value is None:
            return None
        if not isinstance(value, str):
            raise MalformedValue(column, f"expected base64 text, got {value!r}")
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise MalformedValue(column, f"invalid base64 text: {e}") from e

    raise UnsupportedType(f"Unknown column type {tag!r}")
