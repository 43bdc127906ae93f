"""
One-time PowerShell warm-up per process. Latency only: nothing waits on it and a failed
warm-up does not affect later calls.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from cpi_hyperv.errors import ProviderError

logger = logging.getLogger(__name__)

WARMUP_SCRIPT = "Write-Output 'ready'"

_LOCK = threading.Lock()
_STATE: Dict[str, Optional[bool]] = {"started": False, "done": False, "ok": None}


def warm_up_once(executor: Any, background: bool = True) -> bool:
    """Start the warm-up if no caller has yet. Returns True for the caller that started it."""
    with _LOCK:
        if _STATE["started"]:
            return False
        _STATE["started"] = True
    if background:
        threading.Thread(target=_run, args=(executor,), name="cpi-hyperv-warmup", daemon=True).start()
    else:
        _run(executor)
    return True


def _run(executor: Any) -> None:
    ok = False
    try:
        ok = executor.run(WARMUP_SCRIPT).succeeded
    except ProviderError as e:
        logger.warning("[warmup] failed: %s", e)
    else:
        if ok:
            logger.info("[warmup] PowerShell session warmed up")
        else:
            logger.warning("[warmup] warm-up script exited non-zero")
    _STATE["ok"] = ok
    _STATE["done"] = True


def is_warm() -> bool:
    return bool(_STATE["done"] and _STATE["ok"])


def reset_warm_up() -> None:
    with _LOCK:
        _STATE.update({"started": False, "done": False, "ok": None})
