# =============================================================================
# core/merger.py  —  Default Merger
# =============================================================================
#
# Turns a validated input into CanonicalParameters: the complete set of
# values that will be sent, keyed by canonical (snake_case) name.
#
#   required  → taken verbatim from the input
#   optional  → the input's value if given, else the declared default
#   OMIT      → no key at all (NOT an empty string)
#
# A supplied value always wins, even over an OMIT default.
# The only non-deterministic default is Default.now(), and its clock is a
# parameter so tests (and batch scrobbles) can pin it.
# =============================================================================

import time
from typing import Any, Callable, Mapping

from core.models import CanonicalParameters, ToolContract


def merge(
    contract: ToolContract,
    validated: Mapping[str, Any],
    clock: Callable[[], float] = time.time,
) -> CanonicalParameters:
    """Merge validated input with the contract's declared defaults.

    Args:
        contract: The tool's contract.
        validated: Output of validator.validate for the same contract.
        clock: Source of "now" for time-based defaults.

    Returns:
        A new dict; neither argument is modified.
    """
    canonical: CanonicalParameters = {}

    for spec in contract.required:
        canonical[spec.name] = validated[spec.name]

    for spec in contract.optional:
        if spec.name in validated:
            canonical[spec.name] = validated[spec.name]
        elif not spec.default.is_omitted:
            canonical[spec.name] = spec.default.resolve(clock)

    return canonical


def merge_batch(
    entry_contract: ToolContract,
    entries: list[Mapping[str, Any]],
    clock: Callable[[], float] = time.time,
) -> list[CanonicalParameters]:
    """Merge each batch entry independently against the entry contract."""
    return [merge(entry_contract, entry, clock) for entry in entries]
