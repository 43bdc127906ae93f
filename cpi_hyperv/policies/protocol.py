"""
Policy protocol: check(ctx, executor) -> PolicyDecision.
Run by the precheck step after validation; block => the action fails with the decision's code.
All policies must return all four fields; when allowed=True use code="OK".
"""
from typing import Any, Optional, TypedDict


class PolicyDecision(TypedDict):
    allowed: bool
    code: str
    message: str
    detail: Optional[Any]  # object | None


class Policy:
    """Pluggable pre-execution guard attached to an action."""

    name: str = ""

    def check(self, ctx: Any, executor: Any) -> PolicyDecision:
        """
        Return allowed=True to pass; allowed=False to block this invocation.
        ctx.args holds the validated arguments.
        """
        raise NotImplementedError
