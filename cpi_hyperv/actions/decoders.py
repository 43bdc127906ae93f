"""
Output decoders: one per declared output shape, picked per action when the catalog is built.

    CsvDecoder        header line + quoted rows (ConvertTo-Csv)
    JsonDecoder       ConvertTo-Json; "object", "array" or "any" (one-or-many, sniffed)
    ScalarDecoder     bare count or true/false
    SideEffectDecoder output ignored; exit status decides

Decoders raise MalformedOutput only when the overall shape cannot be parsed. Field helpers
below never raise: missing or ill-typed fields fall back to typed defaults.
"""
import csv
import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from cpi_hyperv.errors import MalformedOutput

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

VM_STATES: Dict[int, str] = {2: "Running", 3: "Stopped"}
VHD_FORMATS: Dict[int, str] = {1: "FixedSize", 2: "DynamicExpanding", 3: "Differencing"}


def _clean(text: Optional[str]) -> str:
    return (text or "").strip().lstrip("\ufeff").strip()


class Decoder:
    def decode(self, text: str) -> Any:
        raise NotImplementedError


class SideEffectDecoder(Decoder):
    def decode(self, text: str) -> Any:
        return None


class CsvDecoder(Decoder):
    """Skip the header, map each row's fields to columns by position."""

    def __init__(
        self,
        columns: Sequence[str],
        converters: Optional[Mapping[str, Callable[[Any], Any]]] = None,
    ):
        self.columns = tuple(columns)
        self.converters = dict(converters or {})

    def decode(self, text: str) -> List[Dict[str, Any]]:
        lines = [line for line in (text or "").lstrip("\ufeff").splitlines() if line.strip()]
        rows: List[Dict[str, Any]] = []
        for fields in csv.reader(lines[1:]):
            if len(fields) < len(self.columns):
                logger.debug("[decoder] skipping short csv row: %r", fields)
                continue
            row: Dict[str, Any] = {}
            for column, value in zip(self.columns, fields):
                value = value.strip().strip('"')
                convert = self.converters.get(column)
                row[column] = convert(value) if convert else value
            rows.append(row)
        return rows


class JsonDecoder(Decoder):
    """
    mode="object": one JSON object -> dict
    mode="array":  JSON array -> list of dicts
    mode="any":    sniff first char; { -> [obj], [ -> list, empty output -> []
    fallback=True returns None instead of raising (side-effect actions that synthesise a result).
    """

    MODES = ("object", "array", "any")

    def __init__(self, mode: str = "object", fallback: bool = False):
        if mode not in self.MODES:
            raise ValueError(f"unknown json mode: {mode}")
        self.mode = mode
        self.fallback = fallback

    def decode(self, text: str) -> Any:
        try:
            return self._decode(text)
        except MalformedOutput as e:
            if not self.fallback:
                raise
            logger.warning("[decoder] %s; using fallback result", e.reason)
            return None

    def _decode(self, text: str) -> Any:
        body = _clean(text)
        if not body and self.mode == "any":
            return []
        first = body[:1]
        if first == "{":
            found = "object"
        elif first == "[":
            found = "array"
        else:
            raise MalformedOutput(text or "", "expected JSON")
        if self.mode != "any" and found != self.mode:
            raise MalformedOutput(text or "", f"expected JSON {self.mode}, got {found}")
        try:
            value = json.loads(body)
        except json.JSONDecodeError as e:
            raise MalformedOutput(text or "", f"invalid JSON: {e.msg}") from e
        if found == "object":
            return value if self.mode == "object" else [value]
        return [item for item in value if isinstance(item, dict)]


class ScalarDecoder(Decoder):
    """kind="count" -> int, kind="bool" -> case-insensitive true/false."""

    def __init__(self, kind: str = "count"):
        if kind not in ("count", "bool"):
            raise ValueError(f"unknown scalar kind: {kind}")
        self.kind = kind

    def decode(self, text: str) -> Any:
        body = _clean(text)
        if self.kind == "bool":
            lowered = body.lower()
            if lowered in ("true", "false"):
                return lowered == "true"
            raise MalformedOutput(text or "", "expected true/false")
        try:
            return int(body)
        except ValueError as e:
            raise MalformedOutput(text or "", "expected integer count") from e


def text_field(record: Any, key: str, default: str = "unknown") -> str:
    if not isinstance(record, dict):
        return default
    value = record.get(key)
    return value if isinstance(value, str) else default


def int_field(record: Any, key: str, default: int = 0) -> int:
    if not isinstance(record, dict):
        return default
    value = record.get(key)
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def lookup_code(table: Mapping[int, str], value: Any) -> str:
    """Map a categorical code (int, numeric string, or already-named) to its name; else Unknown."""
    if isinstance(value, bool):
        return UNKNOWN
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return table.get(value, UNKNOWN)
    if isinstance(value, str):
        text = value.strip()
        try:
            return table.get(int(text), UNKNOWN)
        except ValueError:
            pass
        for name in table.values():
            if name.lower() == text.lower():
                return name
    return UNKNOWN


def vm_state(value: Any) -> str:
    return lookup_code(VM_STATES, value)


def vhd_format(value: Any) -> str:
    return lookup_code(VHD_FORMATS, value)
