"""Turn an inbound submission into the Loki push payload.

Parsers raise :class:`~loki_relay.errors.ValidationError` on the first
problem they find, so a submission is either accepted whole or not at all.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from loki_relay.errors import ValidationError
from loki_relay.models import BodyMode, LogEntry

if TYPE_CHECKING:
    from loki_relay.models import Clock, RelayConfig, RelayRequest

LABEL_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")

_IP_HEADERS = ("CF-Connecting-IP", "X-Forwarded-For")
UNKNOWN_IP = "unknown"


def decode_body(body: bytes) -> str:
    text = body.decode("utf-8", errors="replace")
    if not text:
        raise ValidationError("Request body is required")
    return text


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unexpected token {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {text}")
    return value


def parse_structured(text: str, clock: Clock) -> list[LogEntry]:
    try:
        data: Any = json.loads(
            text, parse_constant=_reject_constant, parse_float=_finite_float,
        )
    except ValueError as exc:
        raise ValidationError(f"Invalid JSON: {exc}") from None

    records = data if isinstance(data, list) else [data]
    return [_parse_record(rec, clock) for rec in records]


def parse_passthrough(text: str, clock: Clock) -> list[LogEntry]:
    return [LogEntry(message=text, timestamp=str(clock()))]


def _parse_record(rec: Any, clock: Clock) -> LogEntry:
    message = rec.get("message") if isinstance(rec, dict) else None
    if not message:
        raise ValidationError('Each log entry must have a "message" field')
    if not isinstance(message, str):
        raise ValidationError('"message" must be a string')

    return LogEntry(
        message=message,
        timestamp=_timestamp(rec.get("timestamp"), clock),
        metadata=_metadata(rec.get("metadata")),
    )


def _timestamp(raw: Any, clock: Clock) -> str:
    if not raw:
        return str(clock())
    # floats lose precision at nanosecond scale; bool is an int subclass
    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        raise ValidationError('"timestamp" must be a string or integer')
    return str(raw)


def _metadata(raw: Any) -> dict[str, Any]:
    # empty containers count as present
    if raw is None or raw is False or raw == "" or raw == 0:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError("Metadata must be an object")
    for key, value in raw.items():
        if isinstance(value, (dict, list)):
            raise ValidationError(
                f'Metadata field "{key}" contains nested object. '
                "Only flat key-value pairs are allowed."
            )
    return dict(raw)


def is_valid_label_name(name: str) -> bool:
    if not LABEL_NAME_RE.match(name):
        return False
    # __name__-style names are reserved
    return not (name.startswith("_") and name.endswith("_"))


def query_labels(query: Iterable[tuple[str, str]]) -> dict[str, str]:
    labels: dict[str, str] = {}
    for name, value in query:
        if not is_valid_label_name(name):
            raise ValidationError(f'Invalid label name: "{name}"')
        labels[name] = value
    return labels


def client_ip(request: RelayRequest) -> str:
    for header in _IP_HEADERS:
        value = request.header(header)
        if value:
            return value
    return UNKNOWN_IP


def build_labels(request: RelayRequest, config: RelayConfig) -> dict[str, str]:
    labels: dict[str, str] = {}
    if config.mode is BodyMode.LABELED:
        labels.update(query_labels(request.query))
    labels["proxy"] = config.proxy_name
    labels["ip"] = client_ip(request)
    return labels


def parse_entries(
    request: RelayRequest, config: RelayConfig, clock: Clock,
) -> list[LogEntry]:
    text = decode_body(request.body)
    if config.mode is BodyMode.PASSTHROUGH:
        return parse_passthrough(text, clock)
    return parse_structured(text, clock)


def build_payload(
    labels: dict[str, str], entries: list[LogEntry],
) -> dict[str, list[dict[str, object]]]:
    return {
        "streams": [
            {"stream": labels, "values": [e.value for e in entries]},
        ],
    }
