"""Field validators for VM profiles."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

MIN_SSH_PORT = 22
MAX_SSH_PORT = 65535
# memory (MB) and cpus beyond this many significant digits are rejected.
MAX_COUNT_DIGITS = 9

_NUMBER_RE = re.compile(r"[0-9]+")
_SIZE_RE = re.compile(r"[0-9]+[GgMm]")
_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")


class ValidationKind(str, Enum):
    NUMBER = "number"
    SIZE = "size"
    PORT = "port"
    NAME = "name"


# Draft fields checked on create, in the order they are reported.
FIELD_KINDS: Dict[str, ValidationKind] = {
    "name": ValidationKind.NAME,
    "disk_size": ValidationKind.SIZE,
    "memory": ValidationKind.NUMBER,
    "cpus": ValidationKind.NUMBER,
    "ssh_port": ValidationKind.PORT,
}

POSITIVE_FIELDS = frozenset({"memory", "cpus"})


def is_number(value: Any) -> bool:
    return isinstance(value, str) and _NUMBER_RE.fullmatch(value) is not None


def is_size(value: Any) -> bool:
    return isinstance(value, str) and _SIZE_RE.fullmatch(value) is not None


def is_port(value: Any) -> bool:
    if not is_number(value) or len(value.lstrip("0")) > len(str(MAX_SSH_PORT)):
        return False
    return MIN_SSH_PORT <= int(value) <= MAX_SSH_PORT


def is_name(value: Any) -> bool:
    return isinstance(value, str) and _NAME_RE.fullmatch(value) is not None


_VALIDATORS = {
    ValidationKind.NUMBER: is_number,
    ValidationKind.SIZE: is_size,
    ValidationKind.PORT: is_port,
    ValidationKind.NAME: is_name,
}


def validate(kind: Union[ValidationKind, str], value: Any) -> bool:
    """Return True if *value* is acceptable for *kind*.

    Never raises: unknown kinds and non-string values are simply invalid.
    """
    try:
        kind = ValidationKind(kind)
    except ValueError:
        return False
    return _VALIDATORS[kind](value)


def first_invalid_field(fields: Mapping[str, Any]) -> Optional[str]:
    """Return the first field in FIELD_KINDS order whose value is invalid.

    Values are compared in their textual form, so ``memory=2048`` and
    ``memory="2048"`` are equivalent. Booleans are never numbers and
    memory/cpus must be above zero with at most
    MAX_COUNT_DIGITS significant digits.
    """
    for field, kind in FIELD_KINDS.items():
        value = fields.get(field)
        if isinstance(value, bool):
            return field
        if isinstance(value, int):
            value = str(value)
        if not validate(kind, value):
            return field
        if field in POSITIVE_FIELDS:
            digits = value.lstrip("0")
            if not digits or len(digits) > MAX_COUNT_DIGITS:
                return field
    return None
