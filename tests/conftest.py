"""
Shared fixtures: a recording fake executor and settings isolated from the environment.
"""
from typing import List

import pytest

from cpi_hyperv.actions.registry import build_registry
from cpi_hyperv.actions.runner import ActionDispatcher
from cpi_hyperv.executors.powershell import Executor, RawExecutionResult
from cpi_hyperv.runtime.warmup import reset_warm_up
from cpi_hyperv.settings import ProviderSettings


class FakeExecutor(Executor):
    """Records every script; replays queued results (RawExecutionResult or exception) in order."""

    def __init__(self, *results):
        self.scripts: List[str] = []
        self.results = list(results)

    def run(self, script: str) -> RawExecutionResult:
        self.scripts.append(script)
        if not self.results:
            return RawExecutionResult("", "", True, 0)
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


def ok(stdout: str = "") -> RawExecutionResult:
    return RawExecutionResult(stdout, "", True, 0)


def failed(stderr: str = "", returncode: int = 1) -> RawExecutionResult:
    return RawExecutionResult("", stderr, False, returncode)


@pytest.fixture
def settings() -> ProviderSettings:
    return ProviderSettings(_env_file=None, warmup=False)


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def registry(settings):
    return build_registry(settings)


@pytest.fixture
def dispatcher(executor, registry) -> ActionDispatcher:
    return ActionDispatcher(executor, registry)


@pytest.fixture
def fresh_warmup():
    reset_warm_up()
    yield
    reset_warm_up()
