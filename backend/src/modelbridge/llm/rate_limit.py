"""Rate-limit extraction from HTTP chat API response headers."""

import re
from collections.abc import Mapping

from ..core.logging import get_logger
from .types import RateLimit

logger = get_logger(__name__)

REQUESTS_LIMIT_HEADER = "x-ratelimit-limit-requests"
REQUESTS_REMAINING_HEADER = "x-ratelimit-remaining-requests"
REQUESTS_RESET_HEADER = "x-ratelimit-reset-requests"
TOKENS_LIMIT_HEADER = "x-ratelimit-limit-tokens"
TOKENS_REMAINING_HEADER = "x-ratelimit-remaining-tokens"
TOKENS_RESET_HEADER = "x-ratelimit-reset-tokens"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_reset_duration(value: str | None) -> float | None:
    """Parse durations such as ``6m0s``, ``1s`` or ``20ms`` into seconds."""
    if not value:
        return None
    text = value.strip()
    parts = _DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        logger.debug("Unparseable rate-limit reset value: %s", value)
        return None
    return sum(float(number) * _UNIT_SECONDS[unit] for number, unit in parts)


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        logger.debug("Unparseable rate-limit header value: %s", value)
        return None


def extract_rate_limit(headers: Mapping[str, str]) -> RateLimit | None:
    """Build a RateLimit from response headers; None when no rate-limit header is present."""
    lowered = {k.lower(): v for k, v in headers.items()}
    if not any(k.startswith("x-ratelimit-") for k in lowered):
        return None
    return RateLimit(
        requests_limit=_parse_int(lowered.get(REQUESTS_LIMIT_HEADER)),
        requests_remaining=_parse_int(lowered.get(REQUESTS_REMAINING_HEADER)),
        requests_reset=parse_reset_duration(lowered.get(REQUESTS_RESET_HEADER)),
        tokens_limit=_parse_int(lowered.get(TOKENS_LIMIT_HEADER)),
        tokens_remaining=_parse_int(lowered.get(TOKENS_REMAINING_HEADER)),
        tokens_reset=parse_reset_duration(lowered.get(TOKENS_RESET_HEADER)),
    )
