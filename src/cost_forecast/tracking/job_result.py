"""Per-job outcome record used for reporting."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


@dataclass
class JobResult:
    """Track individual forecast job results."""

    job_id: str
    dimension: str
    value: str
    metric: str
    status: str  # 'success', 'failed', 'error', 'cancelled'
    attempts: int = 0
    rows: int = 0
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_sec: Optional[float] = None
    retry_delays: Optional[List[float]] = None
    error_message: Optional[str] = None
    error_traceback: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
