"""
Validate a loosely-typed parameter mapping against an ActionDefinition.
Pure: returns a new dict holding exactly the schema's parameters, or raises a ValidationError.
"""
from typing import Any, Dict, Mapping

from cpi_hyperv.actions.protocol import ActionDefinition, ParamKind, ParameterSpec
from cpi_hyperv.errors import InvalidParameterValue, MissingRequiredParameter, TypeMismatch, ValidationError


def coerce(spec: ParameterSpec, value: Any) -> Any:
    if spec.kind is ParamKind.INTEGER:
        # JSON decoders hand integers over as 2048.0 sometimes
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if not spec.kind.matches(value):
            raise TypeMismatch(spec.name, spec.kind.value, value)
        return value
    if not spec.kind.matches(value):
        raise TypeMismatch(spec.name, spec.kind.value, value)
    if spec.kind is ParamKind.STRING and "\x00" in value:
        raise InvalidParameterValue(spec.name, "contains a NUL character")
    return value


def validate(definition: ActionDefinition, params: Mapping[str, Any]) -> Dict[str, Any]:
    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise ValidationError(f"Parameters must be an object, got {type(params).__name__}")
    args: Dict[str, Any] = {}
    for spec in definition.parameters:
        value = params.get(spec.name)
        if value is None:
            if spec.required:
                raise MissingRequiredParameter(spec.name)
            args[spec.name] = spec.default
            continue
        args[spec.name] = coerce(spec, value)
    return args
