"""Public result models for forensic_intake intake runs."""

from typing import List, Optional

from pydantic import BaseModel, Field

from forensic_intake.kernel.run_unit import RunUnit
from forensic_intake.kernel.taxonomy import Determination


class InternalIntakeResult(BaseModel):
    """Full operator-facing record of a run (``intake_internal.json``)."""
    target_domain: Optional[str] = None
    target_url: Optional[str] = None
    determination: Determination
    determination_note: Optional[str] = None
    mobile_in_scope: bool
    mobile_anchor_phrase: Optional[str] = None
    total_runs_executed: int  # units actually handed to the executor
    qualifying_confirmations: int
    sufficiency_reached: bool
    run_cap: int
    runs: List[RunUnit] = Field(default_factory=list)  # completed units, execution order
    aborted: bool = False
    generated_utc: str


class ExternalIntakeResult(BaseModel):
    """Client-facing record (``intake_external.json``): the determination only."""
    target_domain: Optional[str] = None
    determination: Determination
    determination_note: Optional[str] = None
    generated_utc: str


class IntakeOutcome(BaseModel):
    """Return value of ``run_intake``."""
    internal: InternalIntakeResult
    external: ExternalIntakeResult
    output_dir: str
    journal_head: str  # hash of the last journal entry written by the run
