"""
Action Pipeline: run an invocation through steps (validate → precheck → render → execute → normalize).
Any step returning ok=False, or raising, stops the pipeline.
"""
import logging
from typing import Any, List, Optional

from cpi_hyperv.actions.protocol import ActionOutput
from cpi_hyperv.errors import ProviderError

logger = logging.getLogger(__name__)


def failure(error: dict, stage: str) -> ActionOutput:
    return {"ok": False, "result": None, "error": {**error, "stage": stage}}


class Step:
    """Step protocol: name, run(ctx, prev_output) -> ActionOutput."""

    name: str = ""

    def run(self, ctx: Any, prev_output: Optional[ActionOutput] = None) -> ActionOutput:
        """Execute step. prev_output is the output of the previous step (None for first)."""
        raise NotImplementedError


def run_pipeline(steps: List[Step], ctx: Any) -> ActionOutput:
    """
    Run steps in order. On first ok=False return immediately.
    ProviderError -> ok=False with its code; any other exception -> STEP_EXCEPTION naming the step.
    """
    out: Optional[ActionOutput] = None
    for step in steps:
        stage = getattr(step, "name", "?")
        try:
            out = step.run(ctx, out)
        except ProviderError as e:
            return failure(e.to_error(), stage)
        except Exception as e:
            logger.exception("[pipeline] step %s raised", stage)
            return failure({"code": "STEP_EXCEPTION", "message": str(e)}, stage)
        if out is None:
            return failure({"code": "STEP_FAILED", "message": "step returned no output"}, stage)
        if not out.get("ok"):
            return out
    return out or failure({"code": "STEP_FAILED", "message": "pipeline has no steps"}, "pipeline")
