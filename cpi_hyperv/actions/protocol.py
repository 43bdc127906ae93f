"""
Action protocol: parameter schema in, ActionOutput out.
Every catalog entry declares its schema, builds its script, and names the decoder for its output.
"""
import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Optional, Tuple, TypedDict

from cpi_hyperv.actions.decoders import Decoder, SideEffectDecoder


class ActionOutput(TypedDict, total=False):
    ok: bool
    result: Optional[Dict[str, Any]]
    error: Optional[Dict[str, Any]]  # {"code", "message", "stage", ...} | None


class ParamKind(str, enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"

    def matches(self, value: Any) -> bool:
        if self is ParamKind.STRING:
            return isinstance(value, str)
        if self is ParamKind.BOOLEAN:
            return isinstance(value, bool)
        return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    description: str
    kind: ParamKind = ParamKind.STRING
    required: bool = True
    default: Any = None

    def __post_init__(self) -> None:
        if not self.required:
            if self.default is None:
                raise ValueError(f"optional parameter '{self.name}' needs a default")
            if not self.kind.matches(self.default):
                raise ValueError(f"default for '{self.name}' is not {self.kind.value}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "type": self.kind.value,
            "required": self.required,
            "default": self.default,
        }


@dataclass(frozen=True)
class ActionDefinition:
    name: str
    description: str
    parameters: Tuple[ParameterSpec, ...] = ()

    def __post_init__(self) -> None:
        seen = set()
        for spec in self.parameters:
            if spec.name in seen:
                raise ValueError(f"duplicate parameter '{spec.name}' in action '{self.name}'")
            seen.add(spec.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [spec.to_dict() for spec in self.parameters],
        }


def required(name: str, description: str, kind: ParamKind = ParamKind.STRING) -> ParameterSpec:
    return ParameterSpec(name, description, kind)


def optional(name: str, description: str, kind: ParamKind, default: Any) -> ParameterSpec:
    return ParameterSpec(name, description, kind, required=False, default=default)


class Action(ABC):
    """
    One catalog entry. Subclasses set name/description/parameters/decoder and implement script().
    build_result() shapes the decoded output (and the validated args) into the result dict.
    """

    name: str = ""
    description: str = ""
    parameters: Tuple[ParameterSpec, ...] = ()
    decoder: Decoder = SideEffectDecoder()
    prechecks: Tuple[Any, ...] = ()  # policies run after validation, before the script

    @cached_property
    def definition(self) -> ActionDefinition:
        return ActionDefinition(self.name, self.description, tuple(self.parameters))

    @abstractmethod
    def script(self, args: Dict[str, Any]) -> Any:
        """Return a Script (or any statement with render()) for validated args."""

    def render(self, args: Dict[str, Any]) -> str:
        return self.script(args).render()

    def build_result(self, decoded: Any, args: Dict[str, Any]) -> Dict[str, Any]:
        return {"success": True}
