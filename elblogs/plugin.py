"""Event source and field extraction for load balancer access logs kept in S3."""

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Union

from elblogs.logentry import ElbLogEntry, ElbLogError
from elblogs.s3source import download_and_parse_object, list_objects

Payload = Union[bytes, bytearray, memoryview]

_CONFIG_KEYS = {
    "region": "region",
    "s3_bucket": "s3Bucket",
    "s3_prefix": "s3Prefix",
}

# (field name, entry attribute, description), in the order they are offered.
_EXTRACT_FIELDS = (
    ("awselb.request_type", "request_type", "The type of request (HTTP/HTTPS)"),
    ("awselb.timestamp", "timestamp", "The timestamp of the request"),
    ("awselb.name", "elb_name", "The name of the ELB"),
    ("awselb.client_ip", "client_ip", "The IP address of the client"),
    ("awselb.client_port", "client_port", "The port number of the client"),
    ("awselb.target_ip", "target_ip", "The IP address of the target"),
    ("awselb.target_port", "target_port", "The port number of the target"),
    (
        "awselb.request_processing_time",
        "request_processing_time",
        "The request processing time in seconds",
    ),
    (
        "awselb.target_processing_time",
        "target_processing_time",
        "The target processing time in seconds",
    ),
    (
        "awselb.response_processing_time",
        "response_processing_time",
        "The response processing time in seconds",
    ),
    ("awselb.elb_status_code", "elb_status_code", "The HTTP status code returned by the ELB"),
    (
        "awselb.target_status_code",
        "target_status_code",
        "The HTTP status code returned by the target",
    ),
    ("awselb.received_bytes", "received_bytes", "The size of the request in bytes"),
    ("awselb.sent_bytes", "sent_bytes", "The size of the response in bytes"),
    ("awselb.request_verb", "request_verb", "The HTTP request method"),
    ("awselb.request_url", "request_url", "The request URL"),
    ("awselb.request_proto", "request_proto", "The request protocol version"),
    ("awselb.user_agent", "user_agent", "The User-Agent header from the client"),
    ("awselb.ssl_cipher", "ssl_cipher", "The SSL cipher used for the connection"),
    ("awselb.ssl_protocol", "ssl_protocol", "The SSL protocol version used"),
    ("awselb.target_group_arn", "target_group_arn", "The ARN of the target group"),
    ("awselb.trace_id", "trace_id", "The trace ID for the request"),
    ("awselb.domain_name", "domain_name", "The domain name used in the request"),
    ("awselb.chosen_cert_arn", "chosen_cert_arn", "The ARN of the chosen certificate"),
    (
        "awselb.matched_rule_priority",
        "matched_rule_priority",
        "The priority of the matched rule",
    ),
    (
        "awselb.request_creation_time",
        "request_creation_time",
        "The time when the request was created",
    ),
    ("awselb.actions_executed", "actions_executed", "The actions executed for the request"),
    ("awselb.redirect_url", "redirect_url", "The redirect URL if applicable"),
    ("awselb.error_reason", "error_reason", "The error reason if applicable"),
    ("awselb.target_port_list", "target_port_list", "The list of target ports"),
    (
        "awselb.target_status_code_list",
        "target_status_code_list",
        "The list of target status codes",
    ),
    ("awselb.classification", "classification", "The classification of the request"),
    (
        "awselb.classification_reason",
        "classification_reason",
        "The reason for the classification",
    ),
    ("awselb.conn_trace_id", "conn_trace_id", "The connection trace ID"),
)

_FIELD_ATTRS = {name: attr for name, attr, _ in _EXTRACT_FIELDS}


@dataclass(frozen=True)
class Config:
    """Plugin configuration: where the access logs live."""

    region: str
    s3_bucket: str
    s3_prefix: str

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Config":
        """Read a configuration object with camelCase keys."""
        try:
            obj = json.loads(text)
        except ValueError as exc:
            raise ValueError(f"Invalid plugin configuration: {exc}") from exc
        if not isinstance(obj, dict):
            raise ValueError("Invalid plugin configuration: expected an object")

        values = {}
        for attr, key in _CONFIG_KEYS.items():
            if key not in obj:
                raise ValueError(f"Invalid plugin configuration: missing field `{key}`")
            value = obj[key]
            if not isinstance(value, str):
                raise ValueError(f"Invalid plugin configuration: `{key}` must be a string")
            values[attr] = value
        return cls(**values)


class NoEventsError(Exception):
    """No events are available right now; the caller should try again later."""


def _c_string(text: str) -> str:
    if "\0" in text:
        raise ValueError("string contains a NUL byte")
    return text


def _format_float(value: float) -> str:
    """Render a float in plain decimal notation with no trailing zeros."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class AwsElbPlugin:
    """Source of access log events read from S3, with field extraction."""

    NAME = "awselb"
    PLUGIN_VERSION = "0.1.0"
    DESCRIPTION = "AWS Elastic Load Balancer access logs plugin"
    EVENT_SOURCE = "awselb"
    EVENT_SOURCES = ("awselb",)
    PLUGIN_ID = 25

    def __init__(self, config: Config, s3_client: Any, idle_sleep: float = 1.0) -> None:
        self.config = config
        self.s3_client = s3_client
        self.idle_sleep = idle_sleep

    def open(self, params: Optional[str] = None) -> "AwsElbPluginInstance":
        """Start a new capture over the configured bucket and prefix."""
        return AwsElbPluginInstance(self, self.config.s3_bucket, self.config.s3_prefix)

    def event_to_string(self, payload: Optional[Payload]) -> str:
        """Return the event's JSON text, or ``{}`` when it carries no data."""
        if payload is None:
            return "{}"
        return _c_string(bytes(payload).decode("utf-8"))

    def extract(self, field: str, payload: Optional[Payload]) -> Union[str, int]:
        """Extract one named field from an event payload.

        Ports, status code and byte counts come back as integers, processing
        times as decimal strings, everything else as strings.
        """
        try:
            attr = _FIELD_ATTRS[field]
        except KeyError:
            raise ValueError(f"Unknown field: {field}") from None
        if payload is None:
            raise ElbLogError("No event data found")

        entry = ElbLogEntry.from_json(bytes(payload))
        value = getattr(entry, attr)
        if isinstance(value, float):
            return _format_float(value)
        if isinstance(value, int):
            return value
        return _c_string(value)

    def fields(self) -> list[tuple[str, str]]:
        """Return the extractable field names with their descriptions."""
        return [(name, description) for name, _, description in _EXTRACT_FIELDS]


class AwsElbPluginInstance:
    """One open capture: walks the log objects and hands out their entries."""

    def __init__(self, plugin: AwsElbPlugin, s3_bucket: str, s3_prefix: str) -> None:
        self.plugin = plugin
        self.s3_bucket = s3_bucket
        self.s3_prefix = s3_prefix
        self.last_processed_key: Optional[str] = None
        self._events: list[ElbLogEntry] = []
        self._next_event = 0
        self._objects: list[str] = []
        self._next_object = 0

    def _has_buffered_event(self) -> bool:
        return self._next_event < len(self._events)

    def _take_event(self) -> bytes:
        event = self._events[self._next_event]
        self._next_event += 1
        return event.to_json().encode("utf-8")

    def _fetch_more_objects(self) -> None:
        if self._objects and self._next_object < len(self._objects):
            return
        self._objects = list_objects(
            self.plugin.s3_client,
            self.s3_bucket,
            self.s3_prefix,
            self.last_processed_key,
        )
        self._next_object = 0

    def _download_next_object(self) -> list[ElbLogEntry]:
        object_key = self._objects[self._next_object]
        self._next_object += 1
        self.last_processed_key = object_key
        return download_and_parse_object(self.plugin.s3_client, self.s3_bucket, object_key)

    def next_batch(self) -> list[bytes]:
        """Return the next batch of serialized events (at most one).

        Raises :class:`NoEventsError` after a pause when no new log objects
        are available.
        """
        if self._has_buffered_event():
            return [self._take_event()]

        self._fetch_more_objects()
        if self._next_object >= len(self._objects):
            time.sleep(self.plugin.idle_sleep)
            raise NoEventsError("no events right now")

        self._events.extend(self._download_next_object())
        self._next_event = 0

        if self._has_buffered_event():
            return [self._take_event()]
        return []