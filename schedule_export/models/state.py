from collections import deque
from typing import Deque, Dict, Optional

from pydantic import BaseModel, Field


class ServiceState(BaseModel):
    """Bookkeeping for remote service calls, scoped to a single run."""

    # Original text -> remote correction, None when the attempt failed
    correction_cache: Dict[str, Optional[str]] = Field(default_factory=dict)
    correction_calls: int = 0
    correction_failures: int = 0
    # Monotonic timestamps of recent correction calls, oldest first
    correction_call_times: Deque[float] = Field(default_factory=deque)

    distance_calls: int = 0
    distance_failures: int = 0
