"""
PowerShell script builder.

Values never reach the script as raw text: strings go through quote() (single-quoted
literal, every quote character doubled), ints and bools become literals. Raw is only for
fixed template text written in this package.
"""
import re
from dataclasses import dataclass
from typing import Any, List, Tuple

# PowerShell accepts the typographic single quotes as literal delimiters too.
_SINGLE_QUOTES = "'\u2018\u2019\u201a\u201b"
_VARIABLE = re.compile(r"^\$[A-Za-z_][A-Za-z0-9_]*$")


def quote(value: str) -> str:
    """Single-quoted PowerShell literal. No $ expansion, no backtick escapes inside."""
    if not isinstance(value, str):
        raise TypeError(f"quote() expects str, got {type(value).__name__}")
    escaped = "".join(ch + ch if ch in _SINGLE_QUOTES else ch for ch in value)
    return f"'{escaped}'"


@dataclass(frozen=True)
class Raw:
    """Trusted template text, emitted verbatim."""

    text: str

    def render(self) -> str:
        return self.text


def megabytes(value: int) -> Raw:
    """Size literal such as 2048MB."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"megabytes() expects int, got {type(value).__name__}")
    return Raw(f"{value}MB")


def literal(value: Any) -> str:
    if isinstance(value, Raw):
        return value.text
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return quote(value)
    raise TypeError(f"cannot embed {type(value).__name__} in a script")


class Command:
    """Cmdlet call: named arguments first (in keyword order), then switches."""

    def __init__(self, name: str, *switches: str, **params: Any):
        self.name = name
        self.switches: Tuple[str, ...] = switches
        self.params = params

    def render(self) -> str:
        parts: List[str] = [self.name]
        for key, value in self.params.items():
            if value is None:
                continue
            parts.append(f"-{key}")
            parts.append(literal(value))
        parts.extend(f"-{switch}" for switch in self.switches)
        return " ".join(parts)


class Pipeline:
    def __init__(self, *stages: Any):
        self.stages = stages

    def render(self) -> str:
        return " | ".join(stage.render() for stage in self.stages)


class Assign:
    def __init__(self, variable: str, expression: Any):
        if not _VARIABLE.match(variable):
            raise ValueError(f"invalid variable name: {variable}")
        self.variable = variable
        self.expression = expression

    def render(self) -> str:
        return f"{self.variable} = {self.expression.render()}"


class NonFatal:
    """Statement whose failure must not stop the statements after it."""

    def __init__(self, statement: Any):
        self.statement = statement

    def render(self) -> str:
        return f"try {{ {self.statement.render()} }} catch {{ }}"


class Script:
    """Ordered statements, rendered as one `; `-joined script for a single process run."""

    def __init__(self, *statements: Any):
        self.statements: List[Any] = list(statements)

    def render(self) -> str:
        return "; ".join(statement.render() for statement in self.statements)
