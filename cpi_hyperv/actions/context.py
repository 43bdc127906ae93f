"""
Per-invocation execution context. Each execute() call owns one; steps record what they produce.
"""
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ActionContext:
    """Normalized view of one action invocation for the pipeline steps."""

    now_ts: int
    invocation_id: str
    action: Any
    params: Dict[str, Any]
    args: Optional[Dict[str, Any]] = None  # set by validate
    script: Optional[str] = None  # set by render
    raw: Any = None  # RawExecutionResult, set by execute
    started: float = field(default_factory=time.monotonic)

    @property
    def action_name(self) -> str:
        return getattr(self.action, "name", "") or ""

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)
