"""
Run policies in order; first block wins. Policies own their failure handling, so exceptions propagate.
"""
from typing import Any, Optional, Sequence, Tuple

from cpi_hyperv.policies.protocol import Policy, PolicyDecision


def run_policies(
    policies: Sequence[Policy],
    ctx: Any,
    executor: Any,
) -> Tuple[bool, Optional[PolicyDecision]]:
    """
    Run each policy in order. First allowed=False returns (False, decision).
    """
    for policy in policies:
        decision = policy.check(ctx, executor)
        if not decision.get("allowed", True):
            return False, decision
    return True, None
