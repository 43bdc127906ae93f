"""
Error taxonomy. Stages raise these; the action pipeline turns them into
ActionOutput {"ok": False, "error": {"code", "message", ...}} so callers never see a raise.
"""
from typing import Any, Dict, Optional


class ProviderError(Exception):
    """Base class. code is stable and machine-readable; str(e) is the human message."""

    code: str = "PROVIDER_ERROR"

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = dict(detail or {})

    def to_error(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.detail}


class ActionNotFound(ProviderError):
    code = "ACTION_NOT_FOUND"

    def __init__(self, name: str):
        super().__init__(f"Action '{name}' not found", {"action": name})
        self.name = name


class ValidationError(ProviderError):
    """Input parameters do not satisfy the action's schema."""

    code = "VALIDATION_ERROR"


class MissingRequiredParameter(ValidationError):
    code = "MISSING_REQUIRED_PARAMETER"

    def __init__(self, name: str):
        super().__init__(f"Missing required parameter: {name}", {"parameter": name})
        self.name = name


class TypeMismatch(ValidationError):
    code = "TYPE_MISMATCH"

    def __init__(self, name: str, expected: str, actual: Any):
        super().__init__(
            f"Parameter '{name}' must be {expected}, got {type(actual).__name__} {actual!r}",
            {"parameter": name, "expected": expected, "actual": repr(actual)},
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class InvalidParameterValue(ValidationError):
    code = "INVALID_PARAMETER_VALUE"

    def __init__(self, name: str, reason: str):
        super().__init__(f"Parameter '{name}' is invalid: {reason}", {"parameter": name})
        self.name = name


class SpawnFailure(ProviderError):
    code = "SPAWN_FAILURE"

    def __init__(self, cause: BaseException):
        super().__init__(f"Failed to execute PowerShell command: {cause}")
        self.cause = cause


class ExecutionTimeout(ProviderError):
    code = "TIMEOUT"

    def __init__(self, seconds: float):
        super().__init__(f"PowerShell command timed out after {seconds:g}s", {"timeout_seconds": seconds})
        self.seconds = seconds


class ToolExecutionFailure(ProviderError):
    code = "TOOL_EXECUTION_FAILURE"

    def __init__(self, stderr: str, returncode: Optional[int] = None):
        text = (stderr or "").strip() or f"exit status {returncode}"
        super().__init__(f"PowerShell command failed: {text}", {"returncode": returncode})
        self.stderr = stderr
        self.returncode = returncode


class MalformedOutput(ProviderError):
    code = "MALFORMED_OUTPUT"

    def __init__(self, raw: str, reason: str = "unparseable output"):
        super().__init__(f"Malformed tool output ({reason}): {raw[:200]!r}", {"raw": raw})
        self.raw = raw
        self.reason = reason


class PolicyBlocked(ProviderError):
    """A pre-check policy refused the action. code comes from the policy decision."""

    def __init__(self, code: str, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail)
        self.code = code
