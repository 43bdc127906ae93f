"""
Default pipeline steps: validate → precheck → render → execute → normalize.
Each step records its artifact on the context and returns ok=True with result None;
normalize returns the action's result.
"""
from typing import Any, List, Optional

from cpi_hyperv.actions.context import ActionContext
from cpi_hyperv.actions.pipeline import Step
from cpi_hyperv.actions.protocol import ActionOutput
from cpi_hyperv.actions.validation import validate
from cpi_hyperv.errors import PolicyBlocked, ToolExecutionFailure
from cpi_hyperv.policies.runner import run_policies

_PASS: ActionOutput = {"ok": True, "result": None, "error": None}


class ValidateStep(Step):
    """Coerce params against the action schema; defaults filled, unknown keys dropped."""

    name = "validate"

    def run(self, ctx: ActionContext, prev_output: Optional[ActionOutput] = None) -> ActionOutput:
        ctx.args = validate(ctx.action.definition, ctx.params)
        return dict(_PASS)


class PrecheckStep(Step):
    name = "precheck"

    def __init__(self, executor: Any):
        self._executor = executor

    def run(self, ctx: ActionContext, prev_output: Optional[ActionOutput] = None) -> ActionOutput:
        policies = getattr(ctx.action, "prechecks", ()) or ()
        if not policies:
            return dict(_PASS)
        allowed, decision = run_policies(policies, ctx, self._executor)
        if not allowed and decision:
            raise PolicyBlocked(decision["code"], decision["message"], decision.get("detail") or {})
        return dict(_PASS)


class RenderStep(Step):
    name = "render"

    def run(self, ctx: ActionContext, prev_output: Optional[ActionOutput] = None) -> ActionOutput:
        ctx.script = ctx.action.render(ctx.args)
        return dict(_PASS)


class ExecuteStep(Step):
    """One subprocess run; non-zero exit surfaces stderr as the failure message."""

    name = "execute"

    def __init__(self, executor: Any):
        self._executor = executor

    def run(self, ctx: ActionContext, prev_output: Optional[ActionOutput] = None) -> ActionOutput:
        raw = self._executor.run(ctx.script)
        ctx.raw = raw
        if not raw.succeeded:
            raise ToolExecutionFailure(raw.stderr, raw.returncode)
        return dict(_PASS)


class NormalizeStep(Step):
    name = "normalize"

    def run(self, ctx: ActionContext, prev_output: Optional[ActionOutput] = None) -> ActionOutput:
        decoded = ctx.action.decoder.decode(ctx.raw.stdout)
        result = ctx.action.build_result(decoded, ctx.args)
        return {"ok": True, "result": result, "error": None}


def default_pipeline_steps(executor: Any) -> List[Step]:
    return [
        ValidateStep(),
        PrecheckStep(executor),
        RenderStep(),
        ExecuteStep(executor),
        NormalizeStep(),
    ]
