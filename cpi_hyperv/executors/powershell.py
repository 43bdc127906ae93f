"""
PowerShell executor: one script in, one subprocess, RawExecutionResult out.

Fixed invocation policy: no logo, no profile, non-interactive, execution policy bypassed,
progress output silenced, hidden window on Windows. Errors inside the script are terminating
($ErrorActionPreference = 'Stop') so a failed statement ends the run with a non-zero exit status.
"""
import logging
import os
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from cpi_hyperv.errors import ExecutionTimeout, SpawnFailure
from cpi_hyperv.settings import ProviderSettings

logger = logging.getLogger(__name__)

BASE_ARGS = ("-NoLogo", "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass")
PREAMBLE = "$ProgressPreference = 'SilentlyContinue'; $ErrorActionPreference = 'Stop'"


@dataclass(frozen=True)
class RawExecutionResult:
    stdout: str
    stderr: str
    succeeded: bool
    returncode: Optional[int] = None


class Executor:
    """Runs a script body against the external tool. Raises only on transport failures."""

    def run(self, script: str) -> RawExecutionResult:
        raise NotImplementedError


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


class PowerShellExecutor(Executor):
    def __init__(self, settings: Optional[ProviderSettings] = None) -> None:
        settings = settings or ProviderSettings()
        self.executable = settings.resolved_executable()
        self.timeout: Optional[float] = settings.timeout_seconds or None
        self.windows = os.name == "nt"

    def wrap(self, script: str) -> str:
        return f"& {{ {PREAMBLE}; {script} }}"

    def build_args(self, script: str) -> List[str]:
        args = [self.executable, *BASE_ARGS]
        if self.windows:
            args += ["-WindowStyle", "Hidden"]
        args += ["-Command", self.wrap(script)]
        return args

    def run(self, script: str) -> RawExecutionResult:
        args = self.build_args(script)
        kwargs = {}
        if self.windows:
            kwargs["creationflags"] = getattr(subprocess, "CREATE_NO_WINDOW", 0)
        logger.debug("[executor] running script: %s", script)
        try:
            proc = subprocess.run(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
                **kwargs,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("[executor] timed out after %ss", self.timeout)
            raise ExecutionTimeout(self.timeout or 0) from e
        except (OSError, ValueError) as e:
            logger.warning("[executor] spawn failed: %s", e)
            raise SpawnFailure(e) from e

        stderr = _decode(proc.stderr)
        if stderr.strip():
            logger.debug("[executor] stderr (exit=%s): %s", proc.returncode, stderr.strip()[:500])
        return RawExecutionResult(
            stdout=_decode(proc.stdout),
            stderr=stderr,
            succeeded=proc.returncode == 0,
            returncode=proc.returncode,
        )
