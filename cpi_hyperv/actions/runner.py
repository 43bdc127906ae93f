"""
ActionDispatcher: resolve action → pipeline(validate → precheck → render → execute → normalize) → ActionOutput.
Logs at key points (START, ACTION_OK / ACTION_FAIL, UNKNOWN_ACTION).
Never raises; every failure comes back as {"ok": False, "error": {"code", "message", "stage"}}.
"""
import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional

from cpi_hyperv.actions.context import ActionContext
from cpi_hyperv.actions.pipeline import Step, failure, run_pipeline
from cpi_hyperv.actions.protocol import ActionDefinition, ActionOutput
from cpi_hyperv.actions.registry import ActionRegistry, init_actions
from cpi_hyperv.actions.steps import default_pipeline_steps
from cpi_hyperv.errors import ActionNotFound

logger = logging.getLogger(__name__)


class ActionDispatcher:
    """
    Encapsulates: look up action, run its pipeline against the executor, return the outcome.
    The registry is the only state and is not modified after construction.
    """

    def __init__(
        self,
        executor: Any,
        registry: Optional[ActionRegistry] = None,
        now_ts_fn: Optional[Callable[[], int]] = None,
        steps_fn: Optional[Callable[[Any], List[Step]]] = None,
    ):
        self._executor = executor
        self._registry = registry if registry is not None else init_actions()
        self._now_ts = now_ts_fn or (lambda: int(time.time() * 1000))
        self._steps_fn = steps_fn or default_pipeline_steps

    def list_actions(self) -> List[str]:
        return self._registry.names()

    def describe_action(self, name: str) -> Optional[ActionDefinition]:
        return self._registry.describe(name)

    def execute(self, name: str, params: Optional[Mapping[str, Any]] = None) -> ActionOutput:
        action = self._registry.get(name)
        if action is None:
            err = ActionNotFound(name)
            logger.warning("[runner] UNKNOWN_ACTION %r", name)
            return failure(err.to_error(), "dispatch")

        ctx = ActionContext(
            now_ts=self._now_ts(),
            invocation_id=uuid.uuid4().hex[:12],
            action=action,
            params=params if params is not None else {},
        )
        logger.info("[runner] START %s id=%s", action.name, ctx.invocation_id)

        try:
            out = run_pipeline(self._steps_fn(self._executor), ctx)
        except Exception as e:
            logger.exception("[runner] %s id=%s raised", action.name, ctx.invocation_id)
            out = failure({"code": "ACTION_EXCEPTION", "message": str(e)}, "runner")

        if out.get("ok") is True:
            logger.info("[runner] ACTION_OK %s id=%s ms=%d", action.name, ctx.invocation_id, ctx.elapsed_ms())
        else:
            err: Dict[str, Any] = out.get("error") or {}
            logger.warning(
                "[runner] ACTION_FAIL %s id=%s stage=%s code=%s: %s",
                action.name,
                ctx.invocation_id,
                err.get("stage"),
                err.get("code"),
                err.get("message"),
            )
        return out
