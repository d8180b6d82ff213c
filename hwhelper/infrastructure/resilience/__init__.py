"""API Resilience Implementations.

Contains the serial request queue that paces calls to the AI API and retries
calls the upstream service rejected with a rate limit.
Bounded Context: API Resilience
"""

from hwhelper.infrastructure.resilience.rate_limit import is_rate_limit_error
from hwhelper.infrastructure.resilience.request_queue import QueueItem, SerialRequestQueue

__all__ = ["SerialRequestQueue", "QueueItem", "is_rate_limit_error"]
