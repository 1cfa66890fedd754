# =============================================================================
# core/validator.py  —  Input Validator
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Checks a raw, loosely-typed parameter map (straight from the agent)
#   against a ToolContract and returns the declared parameters coerced to
#   their semantic kinds.
#
# THE RULES:
#   1. Every required parameter must be present and non-blank.  ALL missing
#      names are reported together in one MissingRequired.
#   2. Values must be coercible to the declared kind ("5" is a fine limit,
#      "five" is not).  All mismatches are reported together.
#   3. Keys the contract doesn't declare are DROPPED, not rejected.  MCP
#      clients sometimes add their own framing keys; only declared
#      parameters ever travel further down the pipeline.
#   4. An explicit null for an optional parameter means "not supplied".
#
# The coercion is deliberately lenient across the JSON boundary: LLMs send
# numbers as strings and booleans as "true" all the time.
# =============================================================================

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from core.errors import BatchTooLarge, MissingRequired, TypeMismatch
from core.models import ParamKind, ParamSpec, ToolContract

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no"}


class _Mismatch(Exception):
    def __init__(self, expected: str):
        self.expected = expected
        super().__init__(expected)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


# -----------------------------------------------------------------------------
# Coercion, one function per ParamKind
# -----------------------------------------------------------------------------
def _to_string(spec: ParamSpec, value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise _Mismatch("a string")
    return value if isinstance(value, str) else str(value)


def _to_integer(spec: ParamSpec, value: Any) -> int:
    if isinstance(value, bool):
        raise _Mismatch(_integer_expectation(spec))
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            raise _Mismatch(_integer_expectation(spec)) from None
    else:
        raise _Mismatch(_integer_expectation(spec))

    if spec.minimum is not None and number < spec.minimum:
        raise _Mismatch(_integer_expectation(spec))
    if spec.maximum is not None and number > spec.maximum:
        raise _Mismatch(_integer_expectation(spec))
    return number


def _integer_expectation(spec: ParamSpec) -> str:
    if spec.minimum is not None and spec.maximum is not None:
        return f"an integer between {spec.minimum} and {spec.maximum}"
    if spec.minimum is not None:
        return f"an integer >= {spec.minimum}"
    return "an integer"


def _to_boolean(spec: ParamSpec, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise _Mismatch("a boolean")


def _to_string_list(spec: ParamSpec, value: Any) -> list[str]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        items = list(value)
    else:
        raise _Mismatch("a list of strings")

    cleaned = [item.strip() for item in items if item.strip()]
    if spec.max_items is not None and len(cleaned) > spec.max_items:
        raise _Mismatch(f"at most {spec.max_items} strings")
    return cleaned


def _to_timestamp(spec: ParamSpec, value: Any) -> int:
    """UNIX seconds from an int, a numeric string, or an ISO-8601 date."""
    expected = "a UNIX timestamp or ISO-8601 date"
    if isinstance(value, bool):
        raise _Mismatch(expected)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            value = int(text)
        else:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                raise _Mismatch(expected) from None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            value = int(parsed.timestamp())
    if not isinstance(value, int) or value < 0:
        raise _Mismatch(expected)
    return value


def _to_track_list(spec: ParamSpec, value: Any) -> list[dict]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, Mapping) for v in value):
        raise _Mismatch("a list of track objects")
    return [dict(entry) for entry in value]


_COERCERS = {
    ParamKind.STRING: _to_string,
    ParamKind.INTEGER: _to_integer,
    ParamKind.BOOLEAN: _to_boolean,
    ParamKind.STRING_LIST: _to_string_list,
    ParamKind.TIMESTAMP: _to_timestamp,
    ParamKind.TRACK_LIST: _to_track_list,
}


def coerce(spec: ParamSpec, value: Any) -> Any:
    """Coerce one value to its declared kind, or raise TypeMismatch."""
    try:
        return _COERCERS[spec.kind](spec, value)
    except _Mismatch as exc:
        raise TypeMismatch([(spec.name, exc.expected)]) from None


# -----------------------------------------------------------------------------
# Contract checks
# -----------------------------------------------------------------------------
def _check(contract: ToolContract, raw: Mapping, prefix: str = ""):
    """Collect (missing, mismatches, values) for one flat parameter map."""
    missing: list[str] = []
    mismatches: list[tuple[str, str]] = []
    values: dict[str, Any] = {}

    declared = {spec.name for spec in contract.parameters}
    dropped = sorted(k for k in raw if k not in declared)
    if dropped:
        logger.debug("%s: dropping undeclared parameters %s", contract.name, dropped)

    for spec in contract.required:
        value = raw.get(spec.name)
        if _is_blank(value):
            missing.append(prefix + spec.name)
            continue
        try:
            coerced = _COERCERS[spec.kind](spec, value)
        except _Mismatch as exc:
            mismatches.append((prefix + spec.name, exc.expected))
            continue
        if _is_blank(coerced):
            missing.append(prefix + spec.name)
        else:
            values[spec.name] = coerced

    for spec in contract.optional:
        value = raw.get(spec.name)
        if value is None:
            continue
        try:
            values[spec.name] = _COERCERS[spec.kind](spec, value)
        except _Mismatch as exc:
            mismatches.append((prefix + spec.name, exc.expected))

    return missing, mismatches, values


def validate(contract: ToolContract, raw: Mapping | None) -> dict[str, Any]:
    """Validate a raw parameter map against a flat (non-batch) contract.

    Args:
        contract: The tool's declared contract.
        raw: Parameters as received from the agent.  May be None.

    Returns:
        A new dict holding only declared parameters, coerced to their kinds.

    Raises:
        MissingRequired: listing every absent or blank required name.
        TypeMismatch: listing every value that could not be coerced.
    """
    missing, mismatches, values = _check(contract, raw or {})
    if missing:
        raise MissingRequired(missing)
    if mismatches:
        raise TypeMismatch(mismatches)
    return values


def validate_batch(
    contract: ToolContract,
    entry_contract: ToolContract,
    raw: Mapping | None,
) -> dict[str, list[dict[str, Any]]]:
    """Validate a batch call: one TRACK_LIST parameter of per-entry maps.

    The size limit is checked before any entry is looked at, and an
    oversized batch is rejected outright rather than truncated.  Entry
    violations are named by position, e.g. "tracks[2].artist".
    """
    raw = raw or {}
    (spec,) = contract.required
    value = raw.get(spec.name)
    if _is_blank(value):
        raise MissingRequired([spec.name])
    entries = coerce(spec, value)

    limit = contract.max_batch or spec.max_items
    if limit is not None and len(entries) > limit:
        raise BatchTooLarge(len(entries), limit)

    missing: list[str] = []
    mismatches: list[tuple[str, str]] = []
    validated = []
    for index, entry in enumerate(entries):
        entry_missing, entry_mismatches, values = _check(
            entry_contract, entry, prefix=f"{spec.name}[{index}]."
        )
        missing.extend(entry_missing)
        mismatches.extend(entry_mismatches)
        validated.append(values)

    if missing:
        raise MissingRequired(missing)
    if mismatches:
        raise TypeMismatch(mismatches)
    return {spec.name: validated}
