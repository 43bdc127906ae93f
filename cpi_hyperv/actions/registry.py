"""
Registry of provider actions. The dispatcher looks up by action name and runs the pipeline.
init_actions() is idempotent: repeated calls return the same registry.
"""
import threading
from typing import Dict, List, Optional

from cpi_hyperv.actions.host import CheckInstall, ConfigureNetworks
from cpi_hyperv.actions.protocol import Action, ActionDefinition
from cpi_hyperv.actions.snapshots import CreateSnapshot, DeleteSnapshot, HasSnapshot
from cpi_hyperv.actions.volumes import (
    AttachVolume,
    CreateVolume,
    DeleteVolume,
    DetachVolume,
    GetVolumes,
    HasVolume,
    SnapshotVolume,
)
from cpi_hyperv.actions.workers import (
    CreateWorker,
    DeleteWorker,
    GetWorker,
    HasWorker,
    ListWorkers,
    RebootWorker,
    SetWorkerMetadata,
    StartWorker,
)
from cpi_hyperv.settings import ProviderSettings


class ActionRegistry:
    """Ordered name → Action map, exact names only. Built once, read-only afterwards."""

    def __init__(self) -> None:
        self._actions: Dict[str, Action] = {}

    def register(self, action: Action) -> None:
        key = action.name
        if not key:
            raise ValueError(f"{type(action).__name__} has no name")
        if key in self._actions:
            raise ValueError(f"action '{key}' already registered")
        self._actions[key] = action

    def get(self, name: str) -> Optional[Action]:
        if not isinstance(name, str) or not name:
            return None
        return self._actions.get(name)

    def names(self) -> List[str]:
        return list(self._actions)

    def describe(self, name: str) -> Optional[ActionDefinition]:
        action = self.get(name)
        return action.definition if action is not None else None


def default_actions(settings: ProviderSettings) -> List[Action]:
    return [
        CheckInstall(),
        ListWorkers(),
        CreateWorker(settings),
        DeleteWorker(),
        GetWorker(),
        HasWorker(),
        StartWorker(),
        GetVolumes(),
        HasVolume(),
        CreateVolume(),
        DeleteVolume(),
        AttachVolume(),
        DetachVolume(),
        CreateSnapshot(),
        DeleteSnapshot(),
        HasSnapshot(),
        RebootWorker(),
        ConfigureNetworks(),
        SetWorkerMetadata(),
        SnapshotVolume(),
    ]


def build_registry(settings: Optional[ProviderSettings] = None) -> ActionRegistry:
    registry = ActionRegistry()
    for action in default_actions(settings or ProviderSettings()):
        registry.register(action)
    return registry


_DEFAULT: Optional[ActionRegistry] = None
_LOCK = threading.Lock()


def init_actions(settings: Optional[ProviderSettings] = None) -> ActionRegistry:
    """Build the process-wide registry on first call. Idempotent: later settings are ignored."""
    global _DEFAULT
    with _LOCK:
        if _DEFAULT is None:
            _DEFAULT = build_registry(settings)
        return _DEFAULT
