from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional

from ..constants import Header
from ..models import RateLimitInfo, Usage

_INTEGER = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class ResponseMetadata:
    """Telemetry carried by the headers of one response."""

    request_id: Optional[str] = None
    latency_ms: Optional[int] = None
    usage: Optional[Usage] = None
    rate_limit: Optional[RateLimitInfo] = None
    usage_warning: Optional[str] = None


def parse_response_metadata(
    headers: Mapping[str, str],
    latency_ms: Optional[int] = None,
) -> ResponseMetadata:
    """
    Extract request id, usage and rate-limit snapshots from response headers.

    Snapshots are all-or-nothing: usage needs limit, used and remaining to
    parse; the rate limit needs limit and remaining (reset is optional).
    Missing or malformed headers leave the field unset.
    """
    usage: Optional[Usage] = None
    limit = parse_header_int(headers.get(Header.MONTHLY_LIMIT))
    used = parse_header_int(headers.get(Header.MONTHLY_USED))
    remaining = parse_header_int(headers.get(Header.MONTHLY_REMAINING))
    if limit is not None and used is not None and remaining is not None:
        usage = Usage(limit=limit, used=used, remaining=remaining)

    rate_limit: Optional[RateLimitInfo] = None
    rl_limit = parse_header_int(headers.get(Header.RATELIMIT_LIMIT))
    rl_remaining = parse_header_int(headers.get(Header.RATELIMIT_REMAINING))
    if rl_limit is not None and rl_remaining is not None:
        rate_limit = RateLimitInfo(
            limit=rl_limit,
            remaining=rl_remaining,
            reset=parse_header_int(headers.get(Header.RATELIMIT_RESET)),
        )

    return ResponseMetadata(
        request_id=headers.get(Header.REQUEST_ID) or None,
        latency_ms=latency_ms,
        usage=usage,
        rate_limit=rate_limit,
        usage_warning=headers.get(Header.USAGE_WARNING) or None,
    )


def parse_header_int(value: Optional[str]) -> Optional[int]:
    """Plain ASCII decimal integer (optional leading minus), or None."""
    if value is None:
        return None
    text = value.strip()
    if not _INTEGER.fullmatch(text):
        return None
    return int(text)
