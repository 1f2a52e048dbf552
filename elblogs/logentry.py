"""Parsing of load balancer access log lines into structured entries."""

from __future__ import annotations

import json
import re
import shlex
from dataclasses import asdict, dataclass, fields
from typing import Any, Union

FIELD_COUNT = 30

_UINT_RE = re.compile(r"\+?[0-9]+")


class ElbLogError(ValueError):
    """Raised when a log line or serialized entry cannot be understood."""


@dataclass(frozen=True)
class ElbLogEntry:
    """One load balancer access log record."""

    request_type: str
    timestamp: str
    elb_name: str
    client_ip: str
    client_port: int
    target_ip: str
    target_port: int
    request_processing_time: float
    target_processing_time: float
    response_processing_time: float
    elb_status_code: int
    target_status_code: str
    received_bytes: int
    sent_bytes: int
    request_verb: str
    request_url: str
    request_proto: str
    user_agent: str
    ssl_cipher: str
    ssl_protocol: str
    target_group_arn: str
    trace_id: str
    domain_name: str
    chosen_cert_arn: str
    matched_rule_priority: str
    request_creation_time: str
    actions_executed: str
    redirect_url: str
    error_reason: str
    target_port_list: str
    target_status_code_list: str
    classification: str
    classification_reason: str
    conn_trace_id: str

    def to_json(self) -> str:
        """Serialize the entry as a JSON object in field order."""
        return json.dumps(asdict(self), separators=(",", ":"))

    @classmethod
    def from_json(cls, data: Union[str, bytes, bytearray]) -> "ElbLogEntry":
        """Build an entry from the JSON produced by :meth:`to_json`."""
        try:
            obj = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise ElbLogError(f"Invalid log entry JSON: {exc}") from exc
        if not isinstance(obj, dict):
            raise ElbLogError("Invalid log entry JSON: expected an object")

        values: dict[str, Any] = {}
        for field in fields(cls):
            if field.name not in obj:
                raise ElbLogError(f"Invalid log entry JSON: missing field `{field.name}`")
            values[field.name] = _check_type(field.name, field.type, obj[field.name])
        return cls(**values)


def _check_type(name: str, type_name: Any, value: Any) -> Any:
    expected = type_name if isinstance(type_name, str) else type_name.__name__
    if expected == "str":
        if isinstance(value, str):
            return value
    elif expected == "int":
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value
    elif expected == "float":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    raise ElbLogError(f"Invalid log entry JSON: bad value for `{name}`")


def _parse_uint(text: str, bits: int) -> int:
    if not _UINT_RE.fullmatch(text):
        return 0
    value = int(text)
    return value if value < (1 << bits) else 0


def _parse_float(text: str) -> float:
    if not text or "_" in text or text != text.strip():
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def _split_host_port(text: str) -> tuple[str, int]:
    parts = text.split(":")
    port = _parse_uint(parts[1], 16) if len(parts) > 1 else 0
    return parts[0], port


def _unquote(text: str) -> str:
    return text.strip('"')


def parse_elb_log_line(line: str) -> ElbLogEntry:
    """Parse one access log line; raise :class:`ElbLogError` if malformed."""
    try:
        parts = shlex.split(line)
    except ValueError as exc:
        raise ElbLogError(f"Failed to split ELB log line: {line}") from exc

    if len(parts) != FIELD_COUNT:
        raise ElbLogError(
            "Invalid ELB log line format: expected at least "
            f"{FIELD_COUNT} fields, got {len(parts)}"
        )

    client_ip, client_port = _split_host_port(parts[3])
    target_ip, target_port = _split_host_port(parts[4])

    request_parts = _unquote(parts[12]).split(" ", 2)
    request_parts += [""] * (3 - len(request_parts))
    request_verb, request_url, request_proto = request_parts

    return ElbLogEntry(
        request_type=parts[0],
        timestamp=parts[1],
        elb_name=parts[2],
        client_ip=client_ip,
        client_port=client_port,
        target_ip=target_ip,
        target_port=target_port,
        request_processing_time=_parse_float(parts[5]),
        target_processing_time=_parse_float(parts[6]),
        response_processing_time=_parse_float(parts[7]),
        elb_status_code=_parse_uint(parts[8], 16),
        target_status_code=parts[9],
        received_bytes=_parse_uint(parts[10], 64),
        sent_bytes=_parse_uint(parts[11], 64),
        request_verb=request_verb,
        request_url=request_url,
        request_proto=request_proto,
        user_agent=_unquote(parts[13]),
        ssl_cipher=parts[14],
        ssl_protocol=parts[15],
        target_group_arn=parts[16],
        trace_id=_unquote(parts[17]),
        domain_name=_unquote(parts[18]),
        chosen_cert_arn=_unquote(parts[19]),
        matched_rule_priority=parts[20],
        request_creation_time=parts[21],
        actions_executed=_unquote(parts[22]),
        redirect_url=_unquote(parts[23]),
        error_reason=_unquote(parts[24]),
        target_port_list=_unquote(parts[25]),
        target_status_code_list=_unquote(parts[26]),
        classification=_unquote(parts[27]),
        classification_reason=_unquote(parts[28]),
        conn_trace_id=parts[29],
    )