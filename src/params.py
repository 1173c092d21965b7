"""
Parameter Coercion - Typed values from free-form string parameters.

Declared "additional parameters" arrive as a flat string map. Each value is
run through an ordered pipeline (JSON, boolean literal, integer, float,
string) before being merged into a request payload.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

logger = logging.getLogger(__name__)

DROP_PARAMS_KEY = "additional_drop_params"

_INT_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class CoercedValue:
    """A parameter value tagged with the pipeline stage that produced it."""

    kind: str  # json, bool, int, float, string or passthrough
    value: Any


def _coerce_scalar(value: str) -> CoercedValue:
    if value == "true":
        return CoercedValue("bool", True)
    if value == "false":
        return CoercedValue("bool", False)
    if _INT_RE.fullmatch(value):
        return CoercedValue("int", int(value))
    if value == value.strip() and "_" not in value and value.isascii():
        try:
            return CoercedValue("float", float(value))
        except ValueError:
            pass
    return CoercedValue("string", value)


def coerce_param(value: Any) -> CoercedValue:
    """
    Convert a declared parameter value to its most specific type.

    Only strings are coerced. JSON parsing is attempted for values that
    look like an array or object; anything that fails to parse continues
    down the scalar pipeline.
    """
    if not isinstance(value, str):
        return CoercedValue("passthrough", value)

    if value.strip().startswith(("[", "{")):
        try:
            return CoercedValue("json", json.loads(value))
        except json.JSONDecodeError:
            pass

    return _coerce_scalar(value)


def merge_additional_params(
    params: Dict[str, Any], additional: Mapping[str, Any]
) -> Dict[str, Any]:
    """
    Merge coerced additional parameters into a payload in place.

    The reserved DROP_PARAMS_KEY holds a JSON list of keys to remove from
    the payload once everything else has been merged.

    Returns:
        The updated params dict.
    """
    drop: List[str] = []

    for key, raw in additional.items():
        coerced = coerce_param(raw)
        if key == DROP_PARAMS_KEY and coerced.kind == "json":
            if isinstance(coerced.value, list):
                drop.extend(item for item in coerced.value if isinstance(item, str))
            continue
        params[key] = coerced.value

    for key in drop:
        if params.pop(key, None) is not None:
            logger.debug(f"Dropped parameter {key}")

    return params
