"""
Closed-schema validation for activity event and status-update payloads.

Each schema is a descriptor: the set of allowed keys, a check per field and
nested descriptors for sub-objects. Validation walks the payload, collects
every violation as a dotted field path and never stops at the first error.
"""

import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from relayer.schemas.activity import (
    ACTIVITY_APP,
    ActivityKind,
    ActivityStatus,
    AiMode,
    AiVerdict,
    TokenSymbol,
    ValidationResult,
)

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
ADDRESS_RE = re.compile(r"^0x[a-f0-9]{40}$")
TX_HASH_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")
AMOUNT_RE = re.compile(r"^[0-9]+$")

Check = Callable[[Any], bool]


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _matches(pattern: re.Pattern) -> Check:
    return lambda value: _is_non_empty_string(value) and pattern.fullmatch(value) is not None


def _one_of(enum_cls) -> Check:
    allowed = {member.value for member in enum_cls}
    return lambda value: _is_non_empty_string(value) and value in allowed


def _is_iso_datetime(value: Any) -> bool:
    if not _is_non_empty_string(value):
        return False
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def _is_url(value: Any) -> bool:
    if not _is_non_empty_string(value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def _is_positive_integer(value: Any) -> bool:
    return _is_integer(value) and value >= 1


def _is_non_negative_integer(value: Any) -> bool:
    return _is_integer(value) and value >= 0


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(_is_non_empty_string(item) for item in value)


is_uuid = _matches(UUID_RE)
is_address = _matches(ADDRESS_RE)
is_tx_hash = _matches(TX_HASH_RE)


class ObjectSchema:
    """
    Descriptor for one JSON object.

    Args:
        fields: field name -> check applied to its value
        required: names that must be present
        nested: field name -> schema for a sub-object
    """

    def __init__(
        self,
        fields: Optional[Dict[str, Check]] = None,
        required: tuple = (),
        nested: Optional[Dict[str, "ObjectSchema"]] = None,
    ):
        self.fields = fields or {}
        self.required = set(required)
        self.nested = nested or {}
        self.allowed_keys = set(self.fields) | set(self.nested)

    def collect(self, obj: Dict[str, Any], path: str, errors: List[str]) -> None:
        """Append every violation in ``obj`` to ``errors``; ``path`` is '' at the root."""
        extra_path = path or "root"
        for key in obj:
            if key not in self.allowed_keys:
                errors.append(f"extra:{extra_path}.{key}")

        for name, check in self.fields.items():
            if name not in obj:
                if name in self.required:
                    errors.append(_join(path, name))
                continue
            if not check(obj[name]):
                errors.append(_join(path, name))

        for name, schema in self.nested.items():
            if name not in obj:
                if name in self.required:
                    errors.append(_join(path, name))
                continue
            value = obj[name]
            if not isinstance(value, dict):
                errors.append(_join(path, name))
                continue
            schema.collect(value, _join(path, name), errors)

    def validate(self, payload: Any) -> ValidationResult:
        if not isinstance(payload, dict):
            return ValidationResult(ok=False, errors=["not_object"])
        errors: List[str] = []
        self.collect(payload, "", errors)
        return ValidationResult(ok=not errors, errors=errors)


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


TX_SCHEMA = ObjectSchema(fields={
    "sourceTxHash": is_tx_hash,
    "destTxHash": is_tx_hash,
})

EVENT_SCHEMA = ObjectSchema(
    fields={
        "id": is_uuid,
        "createdAt": _is_iso_datetime,
        "actor": is_address,
        "app": lambda value: value == ACTIVITY_APP,
        "intentId": is_uuid,
        "kind": _one_of(ActivityKind),
        "status": _one_of(ActivityStatus),
    },
    required=("id", "createdAt", "actor", "app", "intentId", "kind", "status"),
    nested={
        "chains": ObjectSchema(fields={
            "sourceChainId": _is_positive_integer,
            "destChainId": _is_positive_integer,
        }),
        "token": ObjectSchema(
            fields={
                "symbol": _one_of(TokenSymbol),
                "amount": _matches(AMOUNT_RE),
            },
            required=("symbol", "amount"),
        ),
        "tx": TX_SCHEMA,
        "refs": ObjectSchema(fields={
            "explorerSourceUrl": _is_url,
            "explorerDestUrl": _is_url,
        }),
        "ai": ObjectSchema(
            fields={
                "mode": _one_of(AiMode),
                "receiptRoot": _is_non_empty_string,
                "model": _is_non_empty_string,
                "verdict": _one_of(AiVerdict),
                "reason": _is_non_empty_string,
            },
            required=("mode",),
        ),
        "signals": ObjectSchema(
            fields={"items": _is_string_list},
            required=("items",),
            nested={
                "meta": ObjectSchema(fields={
                    "deployAddress": is_address,
                    "errors": _is_string_list,
                    "decimals": _is_non_negative_integer,
                    "slippage": _is_non_empty_string,
                }),
            },
        ),
    },
)

STATUS_SCHEMA = ObjectSchema(
    fields={
        "actor": is_address,
        "id": is_uuid,
        "status": _one_of(ActivityStatus),
    },
    required=("actor", "id", "status"),
    nested={"tx": TX_SCHEMA},
)


def validate_event_payload(payload: Any) -> ValidationResult:
    """Validate a full activity event as submitted to POST /event"""
    return EVENT_SCHEMA.validate(payload)


def validate_status_payload(payload: Any) -> ValidationResult:
    """Validate a status update as submitted to POST /event/status"""
    return STATUS_SCHEMA.validate(payload)
