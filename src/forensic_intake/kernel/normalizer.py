"""Assertion normalizer: grouped assertions -> atomic run units."""

from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .errors import AtomicityViolation, InvalidAssertion, InvalidAssertionGroup
from .run_unit import AssertionGroup, RunUnit


def _group_fields(group: Any) -> tuple:
    if isinstance(group, AssertionGroup):
        return group.anchor, group.assertions
    if not isinstance(group, Mapping):
        raise InvalidAssertionGroup(
            'each group must have "anchor" (string) and "assertions" (array).'
        )
    anchor = group.get("anchor")
    assertions = group.get("assertions")
    if not isinstance(anchor, str) or not anchor.strip() or not isinstance(assertions, (list, tuple)):
        raise InvalidAssertionGroup(
            'each group must have "anchor" (string) and "assertions" (array).'
        )
    return anchor, assertions


def normalize_to_run_units(
    groups: Iterable[Any],
    target_domain: Optional[str] = None,
) -> List[RunUnit]:
    """Produce one run unit per assertion, numbered sequentially from 1.

    Raises:
        InvalidAssertionGroup: a group lacks ``anchor`` or ``assertions``
        InvalidAssertion: an assertion is empty, whitespace-only or not a string
        AtomicityViolation: an assertion spans more than one line
    """
    run_units: List[RunUnit] = []
    for group in groups:
        anchor, assertions = _group_fields(group)
        for assertion in assertions:
            if not isinstance(assertion, str) or not assertion.strip():
                raise InvalidAssertion(f'empty assertion in group "{anchor}".')
            condition = assertion.strip()
            if "\n" in condition or "\r" in condition:
                raise AtomicityViolation(
                    f'assertion in group "{anchor}" spans multiple lines; split it into atomic assertions.'
                )
            run_units.append(RunUnit(
                id=len(run_units) + 1,
                source_anchor=anchor,
                asserted_condition=condition,
                target_domain=target_domain,
            ))
    return run_units


def run_units_from_records(
    records: Sequence[Mapping[str, Any]],
    target_domain: Optional[str] = None,
) -> List[RunUnit]:
    """Build run units from pre-normalized ``{anchor, condition}`` records."""
    run_units: List[RunUnit] = []
    for idx, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise InvalidAssertionGroup(f"run unit record {idx + 1} must be an object.")
        condition = record.get("condition", record.get("asserted_condition"))
        if not isinstance(condition, str) or not condition.strip():
            raise InvalidAssertion(f"run unit record {idx + 1} has no condition.")
        condition = condition.strip()
        if "\n" in condition or "\r" in condition:
            raise AtomicityViolation(f"run unit record {idx + 1} has a multi-line condition.")
        run_units.append(RunUnit(
            id=idx + 1,
            source_anchor=str(record.get("anchor") or "Unknown anchor"),
            asserted_condition=condition,
            target_domain=target_domain,
        ))
    return run_units


def validate_atomicity(run_units: Iterable[RunUnit]) -> None:
    """Re-check the one-condition-per-unit invariant after normalization."""
    for unit in run_units:
        condition = unit.asserted_condition
        if not isinstance(condition, str) or not condition:
            raise AtomicityViolation(f"run unit {unit.id} missing asserted_condition.")
        if "\n" in condition or "\r" in condition:
            raise AtomicityViolation(f"run unit {unit.id} has multi-line asserted_condition.")
