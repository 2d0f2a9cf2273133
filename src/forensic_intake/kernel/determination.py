"""Determination engine: route per-context outcome counts to a locked category.

Pure function of the summaries plus the set of recorded constraint classes.
Raw assertion text is never re-inspected here.
"""

from typing import Dict, FrozenSet, Iterable, Optional

from pydantic import BaseModel, ConfigDict

from .run_unit import RunUnit
from .taxonomy import (
    NOTE_MOBILE_NOT_IN_SCOPE,
    SUFFICIENCY_THRESHOLD,
    ConstraintClass,
    Context,
    Determination,
    Outcome,
)


class ContextSummary(BaseModel):
    qualifying: int = 0
    constrained: int = 0
    total: int = 0


class DeterminationResult(BaseModel):
    """Persisted as ``determination.json``."""
    category: Determination
    note: Optional[str] = None

    model_config = ConfigDict(frozen=True)


def summarize_by_context(run_units: Iterable[RunUnit]) -> Dict[Context, ContextSummary]:
    """Count qualifying, constrained and total units per context.

    Units without a context are counted as desktop.
    """
    summary = {Context.DESKTOP: ContextSummary(), Context.MOBILE: ContextSummary()}
    for unit in run_units:
        bucket = summary[Context.MOBILE if unit.context is Context.MOBILE else Context.DESKTOP]
        bucket.total += 1
        if unit.outcome is not None and unit.outcome.is_qualifying:
            bucket.qualifying += 1
        if unit.outcome is Outcome.CONSTRAINED:
            bucket.constrained += 1
    return summary


def constrained_classes(run_units: Iterable[RunUnit]) -> FrozenSet[ConstraintClass]:
    return frozenset(
        unit.constraint_class
        for unit in run_units
        if unit.outcome is Outcome.CONSTRAINED and unit.constraint_class is not None
    )


def determine(
    desktop: ContextSummary,
    mobile: ContextSummary,
    mobile_in_scope: bool,
    classes: FrozenSet[ConstraintClass] = frozenset(),
) -> DeterminationResult:
    """Apply the determination rules in priority order."""
    desktop_qualified = desktop.qualifying >= SUFFICIENCY_THRESHOLD
    mobile_qualified = mobile_in_scope and mobile.qualifying >= SUFFICIENCY_THRESHOLD
    mobile_constrained = mobile_in_scope and mobile.constrained > 0
    any_constrained = (desktop.constrained + mobile.constrained) > 0

    if desktop_qualified and mobile_qualified:
        return DeterminationResult(category=Determination.DUAL)
    if desktop_qualified and mobile_constrained:
        return DeterminationResult(category=Determination.DESKTOP_MOBILE_CONSTRAINED)
    if desktop_qualified:
        note = None if mobile_in_scope else NOTE_MOBILE_NOT_IN_SCOPE
        return DeterminationResult(category=Determination.DESKTOP, note=note)
    if any_constrained:
        if ConstraintClass.BOTMITIGATION in classes:
            return DeterminationResult(category=Determination.NOT_ELIGIBLE_CONSTRAINTS_BOTMITIGATION)
        return DeterminationResult(category=Determination.NOT_ELIGIBLE_CONSTRAINTS_OTHER)
    return DeterminationResult(category=Determination.NOT_ELIGIBLE)


def compute_determination(run_units: Iterable[RunUnit], mobile_in_scope: bool) -> DeterminationResult:
    """Summarize completed run units and route them to a determination."""
    units = list(run_units)
    summary = summarize_by_context(units)
    return determine(
        summary[Context.DESKTOP],
        summary[Context.MOBILE],
        mobile_in_scope,
        constrained_classes(units),
    )
