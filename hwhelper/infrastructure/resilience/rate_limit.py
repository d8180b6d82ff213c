"""Classification of upstream rate-limit failures.

A failure counts as rate-limited when it carries HTTP status 429 or when the
upstream error is classified as ``insufficient_quota``.
"""

import logging
from typing import Any, Mapping

from openai import RateLimitError

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429
QUOTA_EXCEEDED_TYPES = frozenset({"insufficient_quota"})


def _is_quota_type(value: Any) -> bool:
    return isinstance(value, str) and value in QUOTA_EXCEEDED_TYPES


def _has_quota_classification(payload: Any) -> bool:
    """Checks a structured error payload (``{'type': ...}`` or ``{'error': {...}}``)."""
    if not isinstance(payload, Mapping):
        return False
    if _is_quota_type(payload.get("type")) or _is_quota_type(payload.get("code")):
        return True
    nested = payload.get("error")
    return nested is not payload and _has_quota_classification(nested)


def is_rate_limit_error(error: BaseException) -> bool:
    """Returns True if ``error`` signals that the upstream service throttled us."""
    if isinstance(error, RateLimitError):
        return True

    for attr in ("status", "status_code"):
        if getattr(error, attr, None) == RATE_LIMIT_STATUS:
            return True

    if _is_quota_type(getattr(error, "code", None)) or _is_quota_type(getattr(error, "type", None)):
        return True

    for attr in ("error", "body"):
        if _has_quota_classification(getattr(error, attr, None)):
            logger.debug(f"Quota-exceeded classification found on {type(error).__name__}.{attr}")
            return True

    return False
