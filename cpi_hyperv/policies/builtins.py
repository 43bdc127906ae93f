"""
Built-in policies.

MustNotExistPolicy runs a count lookup before a create. A failed lookup (spawn error, timeout,
non-zero exit, unparseable count) is not the same as "absent"; failure_mode decides:
    "absent"  allow, log a warning
    "fail"    block with PRECHECK_FAILED
"""
import logging
from typing import Any, Callable, Dict

from cpi_hyperv.actions.decoders import ScalarDecoder
from cpi_hyperv.errors import ProviderError, ToolExecutionFailure
from cpi_hyperv.policies.protocol import Policy, PolicyDecision

logger = logging.getLogger(__name__)

FAILURE_MODES = ("absent", "fail")


class MustNotExistPolicy(Policy):
    name = "must_not_exist"

    def __init__(
        self,
        resource: str,
        key: str,
        lookup: Callable[[Dict[str, Any]], Any],
        failure_mode: str = "absent",
    ):
        if failure_mode not in FAILURE_MODES:
            raise ValueError(f"unknown failure mode: {failure_mode}")
        self.resource = resource
        self.key = key
        self.lookup = lookup
        self.failure_mode = failure_mode
        self._count = ScalarDecoder("count")

    def check(self, ctx: Any, executor: Any) -> PolicyDecision:
        args = ctx.args or {}
        target = args.get(self.key)
        try:
            raw = executor.run(self.lookup(args).render())
            if not raw.succeeded:
                raise ToolExecutionFailure(raw.stderr, raw.returncode)
            count = self._count.decode(raw.stdout)
        except ProviderError as e:
            detail = {"resource": self.resource, self.key: target, "cause": e.code}
            if self.failure_mode == "fail":
                return {
                    "allowed": False,
                    "code": "PRECHECK_FAILED",
                    "message": f"Could not check whether {self.resource} '{target}' exists: {e}",
                    "detail": detail,
                }
            logger.warning("[policy] %s lookup for '%s' failed, treating as absent: %s", self.resource, target, e)
            return {"allowed": True, "code": "OK", "message": "lookup failed, treated as absent", "detail": detail}
        if count > 0:
            return {
                "allowed": False,
                "code": "RESOURCE_EXISTS",
                "message": f"{self.resource} '{target}' already exists",
                "detail": {"resource": self.resource, self.key: target},
            }
        return {"allowed": True, "code": "OK", "message": "ok", "detail": None}
