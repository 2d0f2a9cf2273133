"""Locked taxonomy: outcomes, constraint classes, contexts and determinations.

Single source of truth for every closed vocabulary used by the intake
pipeline. Values are enum members, so no fifth outcome or sixth constraint
class can appear at runtime; validators reject anything else by name rather
than clamping it onto a legal value.

Limits:
- RUN_CAP: maximum run units in a schedule (and executed per run)
- SUFFICIENCY_THRESHOLD: qualifying outcomes per context before scheduling stops
- NOTE_MAX_LENGTH: characters allowed in a run unit note
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, NamedTuple, Optional

from forensic_intake.kernel.errors import InvalidConstraintClass, InvalidOutcome


RUN_CAP = 10
SUFFICIENCY_THRESHOLD = 2
NOTE_MAX_LENGTH = 160


class Outcome(str, Enum):
    OBSERVED = "Observed as asserted"
    NOT_OBSERVED = "Not observed as asserted"
    CONSTRAINED = "Constrained"
    INSUFFICIENT = "Insufficiently specified for bounded execution"

    @property
    def is_qualifying(self) -> bool:
        return self in QUALIFYING_OUTCOMES

    @property
    def allows_note(self) -> bool:
        return self in NOTE_ALLOWED_OUTCOMES


QUALIFYING_OUTCOMES = frozenset({Outcome.OBSERVED, Outcome.NOT_OBSERVED})
NOTE_ALLOWED_OUTCOMES = frozenset({Outcome.CONSTRAINED, Outcome.INSUFFICIENT})


class ConstraintClass(str, Enum):
    AUTHWALL = "AUTHWALL"
    BOTMITIGATION = "BOTMITIGATION"
    GEOBLOCK = "GEOBLOCK"
    HARDCRASH = "HARDCRASH"
    NAVIMPEDIMENT = "NAVIMPEDIMENT"


class Context(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"


class DeterminationFamily(str, Enum):
    """Top-level determination categories."""
    DUAL_ELIGIBLE = "DUAL_ELIGIBLE"
    DESKTOP_ELIGIBLE = "DESKTOP_ELIGIBLE"
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    NOT_ELIGIBLE_CONSTRAINTS = "NOT_ELIGIBLE_CONSTRAINTS"


class Determination(str, Enum):
    """Locked external determination headers. No paraphrase permitted."""
    DUAL = "DETERMINATION: ELIGIBLE FOR DESKTOP AND MOBILE TECHNICAL RECORD BUILD"
    DESKTOP = "DETERMINATION: ELIGIBLE FOR DESKTOP TECHNICAL RECORD BUILD"
    DESKTOP_MOBILE_CONSTRAINED = (
        "DETERMINATION: ELIGIBLE FOR DESKTOP TECHNICAL RECORD BUILD / MOBILE BASELINE: CONSTRAINED"
    )
    NOT_ELIGIBLE = "DETERMINATION: NOT ELIGIBLE FOR FORENSIC EXECUTION"
    NOT_ELIGIBLE_CONSTRAINTS_BOTMITIGATION = (
        "DETERMINATION: NOT ELIGIBLE FOR FORENSIC EXECUTION - CONSTRAINTS (BOTMITIGATION)"
    )
    NOT_ELIGIBLE_CONSTRAINTS_OTHER = (
        "DETERMINATION: NOT ELIGIBLE FOR FORENSIC EXECUTION - CONSTRAINTS (OTHER)"
    )

    @property
    def family(self) -> DeterminationFamily:
        return _DETERMINATION_FAMILY[self]


_DETERMINATION_FAMILY = MappingProxyType({
    Determination.DUAL: DeterminationFamily.DUAL_ELIGIBLE,
    Determination.DESKTOP: DeterminationFamily.DESKTOP_ELIGIBLE,
    Determination.DESKTOP_MOBILE_CONSTRAINED: DeterminationFamily.DESKTOP_ELIGIBLE,
    Determination.NOT_ELIGIBLE: DeterminationFamily.NOT_ELIGIBLE,
    Determination.NOT_ELIGIBLE_CONSTRAINTS_BOTMITIGATION: DeterminationFamily.NOT_ELIGIBLE_CONSTRAINTS,
    Determination.NOT_ELIGIBLE_CONSTRAINTS_OTHER: DeterminationFamily.NOT_ELIGIBLE_CONSTRAINTS,
})


# Fixed notes. These are the only system-authored note texts.
NOTE_MOBILE_NOT_ANCHORED = "Mobile context assertion does not meet specificity threshold."
NOTE_UNMAPPED_CONSTRAINT = "Blocking condition does not map to a locked constraint class."
NOTE_MOBILE_NOT_IN_SCOPE = "Mobile context was not in scope per explicit anchor rule."
NOTE_RUN_ABORTED = "Run aborted before completion."


class Viewport(NamedTuple):
    width: int
    height: int

    def as_dict(self) -> dict:
        return {"width": self.width, "height": self.height}


VIEWPORTS = MappingProxyType({
    Context.DESKTOP: Viewport(1366, 900),
    Context.MOBILE: Viewport(393, 852),
})

LOCALE = "en-US"
TIMEZONE_ID = "America/New_York"
DEVICE_SCALE_FACTOR = 1


def validate_outcome(value: Any) -> Outcome:
    """Return the Outcome for an exact label, raising InvalidOutcome otherwise."""
    if isinstance(value, Outcome):
        return value
    if isinstance(value, str):
        for outcome in Outcome:
            if outcome.value == value:
                return outcome
    raise InvalidOutcome(value)


def validate_constraint_class(value: Any) -> Optional[ConstraintClass]:
    """Return the ConstraintClass for an exact value.

    None and the empty string mean "no class recorded" and return None.
    Any other value outside the locked set raises InvalidConstraintClass.
    """
    if value is None or value == "":
        return None
    if isinstance(value, ConstraintClass):
        return value
    if isinstance(value, str):
        for cls in ConstraintClass:
            if cls.value == value:
                return cls
    raise InvalidConstraintClass(value)
