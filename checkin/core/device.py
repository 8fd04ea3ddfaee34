"""
Device identifier resolution from request forwarding metadata.

Proxy headers are trusted at face value: a client that forges them gets a
fresh per-device quota.  This is a best-effort heuristic in the absence of
logins; swap this function out for a stronger fingerprint if needed.
"""

from __future__ import annotations

from collections.abc import Mapping

UNKNOWN_DEVICE = "Unknown"
MAX_DEVICE_ID_LENGTH = 64  # matches attendance.device_id

# Checked in order; the first non-empty value wins
_HEADER_PRIORITY = (
    "x-forwarded-for",
    "x-real-ip",
    "x-client-ip",
    "cf-connecting-ip",
)


def resolve_device_id(headers: Mapping[str, str], peer_host: str | None = None) -> str:
    """Return the best-guess originating address for a request.

    *headers* may be a Starlette ``Headers`` object (case-insensitive) or a
    plain mapping with lower-case keys.
    """
    for name in _HEADER_PRIORITY:
        raw = headers.get(name)
        if not raw:
            continue
        # X-Forwarded-For is "client, proxy1, proxy2"
        candidate = raw.split(",")[0].strip()
        if candidate:
            return candidate[:MAX_DEVICE_ID_LENGTH]

    if peer_host and peer_host.strip():
        return peer_host.strip()[:MAX_DEVICE_ID_LENGTH]
    return UNKNOWN_DEVICE
