"""Listing and reading load balancer access log objects from an S3 bucket.

The functions take any client object with the same call style as the usual
S3 client: ``list_objects_v2(Bucket=..., Prefix=..., StartAfter=...)``
returns a mapping with an optional ``Contents`` list of ``{"Key": ...}``
items, and ``get_object(Bucket=..., Key=...)`` returns a mapping whose
``Body`` has a ``read()`` method (or is plain bytes).
"""

from __future__ import annotations

import gzip
import logging
import zlib
from typing import Any, Optional

from elblogs.logentry import ElbLogEntry, ElbLogError, parse_elb_log_line

log = logging.getLogger(__name__)

LOG_SUFFIXES = (".log", ".log.gz")


def list_objects(
    s3_client: Any,
    bucket: str,
    prefix: str,
    start_after: Optional[str] = None,
) -> list[str]:
    """Return the sorted keys of log objects under ``prefix``.

    When ``start_after`` is given, listing starts after that key so that
    objects already processed are skipped.
    """
    request: dict[str, str] = {"Bucket": bucket, "Prefix": prefix}
    if start_after is not None:
        request["StartAfter"] = start_after

    response = s3_client.list_objects_v2(**request)
    contents = response.get("Contents") or []
    keys = (obj.get("Key") for obj in contents)
    return sorted(
        key for key in keys if key is not None and key.endswith(LOG_SUFFIXES)
    )


def parse_log_content(content: str) -> list[ElbLogEntry]:
    """Parse every log line in ``content``.

    Blank lines and lines starting with ``#`` are skipped; lines that do not
    parse are reported through the logger and left out.
    """
    entries = []
    for raw in content.split("\n"):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            entries.append(parse_elb_log_line(line))
        except ElbLogError as exc:
            log.warning("Failed to parse ELB log line: %s", exc)
    return entries


def _read_body(body: Any) -> bytes:
    if hasattr(body, "read"):
        return body.read()
    return bytes(body)


def _decode(object_key: str, data: bytes) -> str:
    if object_key.endswith(".gz"):
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as exc:
            raise ElbLogError(f"Failed to decompress {object_key}: {exc}") from exc
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ElbLogError(f"Object {object_key} is not valid UTF-8: {exc}") from exc


def download_and_parse_object(
    s3_client: Any, bucket: str, object_key: str
) -> list[ElbLogEntry]:
    """Download one log object, gunzipping ``.gz`` keys, and parse its lines."""
    response = s3_client.get_object(Bucket=bucket, Key=object_key)
    data = _read_body(response["Body"])
    return parse_log_content(_decode(object_key, data))