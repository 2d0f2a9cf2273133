"""Run schedule construction: per-context queues, interleave, hard cap.

The schedule is built once, before any execution, and never grows:
- one desktop copy per source unit
- one mobile copy per source unit when mobile is in scope for the run;
  copies without their own anchor are pre-skipped as Insufficient
- desktop[i] precedes mobile[i]
- total length never exceeds RUN_CAP
"""

from typing import Iterable, List, Optional, Tuple

from .anchor import detect_anchor
from .run_unit import MobileAnchorBasis, RunUnit
from .taxonomy import NOTE_MOBILE_NOT_ANCHORED, RUN_CAP, Context, Outcome


RunSchedule = Tuple[RunUnit, ...]


def _mobile_copy(unit: RunUnit) -> RunUnit:
    # The unit's own condition must anchor mobile; the complaint-level anchor is not enough.
    anchor = detect_anchor(unit.asserted_condition)
    if anchor.mobile_in_scope:
        return unit.for_context(
            Context.MOBILE,
            mobile_anchor_basis=MobileAnchorBasis(
                source_reference=unit.source_anchor,
                anchoring_phrase=anchor.anchor_phrase,
            ),
        )
    return unit.for_context(
        Context.MOBILE,
        skipped=True,
        outcome=Outcome.INSUFFICIENT,
        note=NOTE_MOBILE_NOT_ANCHORED,
    )


def build_queues(
    run_units: Iterable[RunUnit],
    mobile_in_scope: bool,
    run_cap: int = RUN_CAP,
) -> Tuple[List[RunUnit], List[RunUnit]]:
    """Build the desktop and mobile queues, stopping once ``run_cap`` is reached."""
    desktop: List[RunUnit] = []
    mobile: List[RunUnit] = []
    for unit in run_units:
        if len(desktop) + len(mobile) >= run_cap:
            break
        desktop.append(unit.for_context(Context.DESKTOP))
        if mobile_in_scope:
            mobile.append(_mobile_copy(unit))
    return desktop, mobile


def interleave(desktop: List[RunUnit], mobile: List[RunUnit]) -> List[RunUnit]:
    """Alternate desktop[i], mobile[i]; a longer queue's tail follows in order."""
    ordered: List[RunUnit] = []
    for i in range(max(len(desktop), len(mobile))):
        if i < len(desktop):
            ordered.append(desktop[i])
        if i < len(mobile):
            ordered.append(mobile[i])
    return ordered


def build_schedule(
    run_units: Iterable[RunUnit],
    mobile_in_scope: bool,
    run_cap: Optional[int] = None,
) -> RunSchedule:
    """Return the immutable, capped execution order for a run."""
    cap = RUN_CAP if run_cap is None else min(run_cap, RUN_CAP)
    desktop, mobile = build_queues(run_units, mobile_in_scope, cap)
    return tuple(interleave(desktop, mobile)[:cap])
