"""Domain Events related to queued API requests.

Emitted by the serial request queue as an item moves from submission to
settlement: queued, deferred for pacing, started, retried, succeeded, failed.
"""

from dataclasses import dataclass, field
import time
from typing import Optional

# Base Event Class
@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific Queue Events ---

@dataclass
class RequestQueued(DomainEvent):
    """Event triggered when a request is appended to the pending sequence."""
    request_id: str
    queue_depth: int # Pending items after the append
    timestamp: float = field(default_factory=time.time)

@dataclass
class RequestDeferred(DomainEvent):
    """Event triggered when the queue waits to honour the pacing interval."""
    request_id: Optional[str]
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class RequestStarted(DomainEvent):
    """Event triggered right before the wrapped operation is invoked."""
    request_id: str
    attempt_number: int # 1-based
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a rate-limited request will be retried."""
    request_id: str
    attempt_number: int # Retry number, 1..max_retries
    max_retries: int
    delay_seconds: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class RequestSucceeded(DomainEvent):
    """Event triggered when a request settles with a result."""
    request_id: str
    attempts: int
    latency_ms: float # Latency of the final attempt
    timestamp: float = field(default_factory=time.time)

@dataclass
class RequestFailed(DomainEvent):
    """Event triggered when a request settles with an error."""
    request_id: str
    attempts: int
    error_type: str
    error_message: str
    rate_limited: bool = False # True when retries were exhausted
    timestamp: float = field(default_factory=time.time)
