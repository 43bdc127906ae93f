"""
Hyper-V provider: the surface a host drives. Identity, default settings, and the action API.
"""
from typing import Any, Dict, List, Mapping, Optional

from cpi_hyperv.actions.protocol import ActionDefinition, ActionOutput
from cpi_hyperv.actions.registry import ActionRegistry, build_registry
from cpi_hyperv.actions.runner import ActionDispatcher
from cpi_hyperv.executors.powershell import Executor, PowerShellExecutor
from cpi_hyperv.runtime.warmup import warm_up_once
from cpi_hyperv.settings import ProviderSettings


class HyperVProvider:
    name = "hyperv"
    provider_type = "command"

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        executor: Optional[Executor] = None,
        registry: Optional[ActionRegistry] = None,
    ) -> None:
        self.settings = settings or ProviderSettings()
        self.executor = executor or PowerShellExecutor(self.settings)
        self.dispatcher = ActionDispatcher(self.executor, registry or build_registry(self.settings))
        if self.settings.warmup:
            warm_up_once(self.executor)

    def default_settings(self) -> Dict[str, Any]:
        return self.settings.default_settings()

    def list_actions(self) -> List[str]:
        return self.dispatcher.list_actions()

    def get_action_definition(self, action: str) -> Optional[ActionDefinition]:
        return self.dispatcher.describe_action(action)

    def execute_action(self, action: str, params: Optional[Mapping[str, Any]] = None) -> ActionOutput:
        return self.dispatcher.execute(action, params)
