"""Tests for the determination engine."""

import pytest

from forensic_intake.kernel.determination import (
    ContextSummary,
    compute_determination,
    constrained_classes,
    determine,
    summarize_by_context,
)
from forensic_intake.kernel.run_unit import RunUnit
from forensic_intake.kernel.taxonomy import (
    NOTE_MOBILE_NOT_IN_SCOPE,
    ConstraintClass,
    Context,
    Determination,
    Outcome,
)


def _unit(unit_id, context, outcome, constraint_class=None):
    return RunUnit(
        id=unit_id,
        source_anchor="P1",
        asserted_condition=f"Condition {unit_id}",
        context=context,
        outcome=outcome,
        constraint_class=constraint_class,
    )


D, M = Context.DESKTOP, Context.MOBILE


def test_desktop_only_without_mobile_scope_carries_note():
    units = [_unit(1, D, Outcome.OBSERVED), _unit(2, D, Outcome.OBSERVED)]
    result = compute_determination(units, mobile_in_scope=False)
    assert result.category is Determination.DESKTOP
    assert result.note == NOTE_MOBILE_NOT_IN_SCOPE


def test_desktop_with_mobile_in_scope_but_unqualified():
    units = [_unit(1, D, Outcome.OBSERVED), _unit(2, D, Outcome.NOT_OBSERVED), _unit(1, M, Outcome.INSUFFICIENT)]
    result = compute_determination(units, mobile_in_scope=True)
    assert result.category is Determination.DESKTOP
    assert result.note is None


def test_dual():
    units = [
        _unit(1, D, Outcome.OBSERVED),
        _unit(1, M, Outcome.OBSERVED),
        _unit(2, D, Outcome.NOT_OBSERVED),
        _unit(2, M, Outcome.NOT_OBSERVED),
    ]
    assert compute_determination(units, mobile_in_scope=True).category is Determination.DUAL


def test_mobile_qualifying_ignored_when_not_in_scope():
    units = [
        _unit(1, D, Outcome.OBSERVED),
        _unit(1, M, Outcome.OBSERVED),
        _unit(2, D, Outcome.OBSERVED),
        _unit(2, M, Outcome.OBSERVED),
    ]
    assert compute_determination(units, mobile_in_scope=False).category is Determination.DESKTOP


def test_desktop_with_mobile_constrained():
    units = [
        _unit(1, D, Outcome.OBSERVED),
        _unit(1, M, Outcome.CONSTRAINED, ConstraintClass.BOTMITIGATION),
        _unit(2, D, Outcome.OBSERVED),
    ]
    result = compute_determination(units, mobile_in_scope=True)
    assert result.category is Determination.DESKTOP_MOBILE_CONSTRAINED


def test_constraints_botmitigation():
    units = [_unit(1, D, Outcome.CONSTRAINED, ConstraintClass.BOTMITIGATION), _unit(2, D, Outcome.OBSERVED)]
    result = compute_determination(units, mobile_in_scope=False)
    assert result.category is Determination.NOT_ELIGIBLE_CONSTRAINTS_BOTMITIGATION


@pytest.mark.parametrize(
    "constraint_class",
    [ConstraintClass.AUTHWALL, ConstraintClass.GEOBLOCK, ConstraintClass.HARDCRASH, ConstraintClass.NAVIMPEDIMENT],
)
def test_constraints_other(constraint_class):
    units = [_unit(1, D, Outcome.CONSTRAINED, constraint_class)]
    result = compute_determination(units, mobile_in_scope=False)
    assert result.category is Determination.NOT_ELIGIBLE_CONSTRAINTS_OTHER


def test_botmitigation_wins_over_other_classes():
    units = [
        _unit(1, D, Outcome.CONSTRAINED, ConstraintClass.AUTHWALL),
        _unit(2, D, Outcome.CONSTRAINED, ConstraintClass.BOTMITIGATION),
    ]
    result = compute_determination(units, mobile_in_scope=False)
    assert result.category is Determination.NOT_ELIGIBLE_CONSTRAINTS_BOTMITIGATION


def test_not_eligible_fallthrough():
    units = [_unit(1, D, Outcome.OBSERVED), _unit(2, D, Outcome.INSUFFICIENT)]
    result = compute_determination(units, mobile_in_scope=False)
    assert result.category is Determination.NOT_ELIGIBLE
    assert result.note is None


def test_no_units():
    assert compute_determination([], mobile_in_scope=True).category is Determination.NOT_ELIGIBLE


def test_summarize_by_context_defaults_to_desktop():
    units = [
        RunUnit(id=1, source_anchor="P1", asserted_condition="A", outcome=Outcome.OBSERVED),
        _unit(1, M, Outcome.CONSTRAINED, ConstraintClass.GEOBLOCK),
        _unit(2, M, Outcome.NOT_OBSERVED),
    ]
    summary = summarize_by_context(units)
    assert summary[D] == ContextSummary(qualifying=1, constrained=0, total=1)
    assert summary[M] == ContextSummary(qualifying=1, constrained=1, total=2)


def test_constrained_classes():
    units = [
        _unit(1, D, Outcome.CONSTRAINED, ConstraintClass.GEOBLOCK),
        _unit(2, D, Outcome.CONSTRAINED, ConstraintClass.GEOBLOCK),
        _unit(3, D, Outcome.INSUFFICIENT),
    ]
    assert constrained_classes(units) == frozenset({ConstraintClass.GEOBLOCK})


def test_determine_is_pure_over_summaries():
    desktop = ContextSummary(qualifying=2, constrained=0, total=2)
    mobile = ContextSummary(qualifying=0, constrained=1, total=1)
    first = determine(desktop, mobile, True, frozenset({ConstraintClass.AUTHWALL}))
    second = determine(desktop, mobile, True, frozenset({ConstraintClass.AUTHWALL}))
    assert first == second
    assert first.category is Determination.DESKTOP_MOBILE_CONSTRAINED
