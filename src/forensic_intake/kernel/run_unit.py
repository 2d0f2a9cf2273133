"""Pydantic models for run units and grouped assertions."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from .taxonomy import ConstraintClass, Context, Outcome


class AssertionGroup(BaseModel):
    """Human-authored assertions sharing one source anchor."""
    anchor: str
    assertions: List[str]

    model_config = ConfigDict(extra="forbid")


class MobileAnchorBasis(BaseModel):
    """Why an individual mobile run unit is in scope."""
    source_reference: str
    anchoring_phrase: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class RunUnit(BaseModel):
    """One atomic assertion under test, in one execution context.

    Assignment is not validated: executors record ``constraint_class`` as a side
    effect and the orchestrator validates it afterwards, downgrading values that
    are not in the locked set instead of failing on assignment.
    """
    id: int = Field(..., ge=1)
    source_anchor: str
    asserted_condition: str
    target_domain: Optional[str] = None
    context: Optional[Context] = None
    outcome: Optional[Outcome] = None
    constraint_class: Optional[ConstraintClass] = None
    note: Optional[str] = None
    mobile_anchor_basis: Optional[MobileAnchorBasis] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    skipped: bool = False

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def drop_computed_key(cls, data):
        # unit_key is derived; persisted records carry it but it is never an input
        if isinstance(data, dict) and "unit_key" in data:
            data = {k: v for k, v in data.items() if k != "unit_key"}
        return data

    @field_validator("asserted_condition")
    @classmethod
    def validate_asserted_condition(cls, v: str) -> str:
        """Atomicity: exactly one non-empty line."""
        if not v or not v.strip():
            raise ValueError("asserted_condition must be non-empty")
        if "\n" in v or "\r" in v:
            raise ValueError("asserted_condition must be a single line (one condition per run unit)")
        return v

    @model_validator(mode="after")
    def validate_constraint_pairing(self) -> "RunUnit":
        if self.constraint_class is not None and self.outcome is not Outcome.CONSTRAINED:
            raise ValueError("constraint_class is only permitted when outcome is Constrained")
        return self

    @computed_field
    @property
    def unit_key(self) -> str:
        """Stable label; mobile siblings share the numeric id and carry a -M suffix."""
        suffix = "-M" if self.context is Context.MOBILE else ""
        return f"RU-{self.id:03d}{suffix}"

    def for_context(self, context: Context, **updates) -> "RunUnit":
        """Return a copy of this unit placed in ``context``."""
        return self.model_copy(update={"context": context, **updates}, deep=True)
