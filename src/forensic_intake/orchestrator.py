"""Intake orchestration: schedule execution, determination and result artifacts."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Union

from forensic_intake._internal.canonical_json import canonical_dumps
from forensic_intake._internal.io.journal_log import JOURNAL_FILENAME, JournalWriter
from forensic_intake._internal.io.results import (
    write_determination,
    write_intake_results,
    write_run_results,
)
from forensic_intake.capture import CaptureBinding, Clock, utc_now
from forensic_intake.config import IntakeConfig
from forensic_intake.contracts import ExternalIntakeResult, IntakeOutcome, InternalIntakeResult
from forensic_intake.kernel.anchor import detect_anchor
from forensic_intake.kernel.determination import DeterminationResult, compute_determination
from forensic_intake.kernel.errors import (
    ExecutionFailure,
    IntakeConfigError,
    InvalidConstraintClass,
    PacketAlreadySealed,
)
from forensic_intake.kernel.external_filter import assert_no_banned_vocabulary, filter_for_external
from forensic_intake.kernel.normalizer import (
    normalize_to_run_units,
    run_units_from_records,
    validate_atomicity,
)
from forensic_intake.kernel.note_gate import enforce_note
from forensic_intake.kernel.run_unit import RunUnit
from forensic_intake.kernel.packet import PACKET_HASH_FILENAME
from forensic_intake.kernel.schedule import build_schedule
from forensic_intake.kernel.taxonomy import (
    NOTE_RUN_ABORTED,
    NOTE_UNMAPPED_CONSTRAINT,
    RUN_CAP,
    SUFFICIENCY_THRESHOLD,
    ConstraintClass,
    Context,
    Determination,
    Outcome,
    validate_constraint_class,
    validate_outcome,
)

logger = logging.getLogger(__name__)


class Executor(Protocol):
    """Runs one unit in an isolated browsing session and returns its outcome label.

    When returning Constrained the executor sets ``unit.constraint_class``.
    Observations go through sessions opened from ``capture``, which is bound
    to the run's journal and capture scope. An ExecutionFailure is contained
    to the unit as a HARDCRASH; any other exception aborts the run.
    """

    def execute(
        self,
        unit: RunUnit,
        target_url: str,
        capture: Optional[CaptureBinding] = None,
    ) -> Union[Outcome, str]:
        ...


class ScheduleExecution:
    """Drive a built schedule through an executor, one unit at a time.

    State is kept on the instance so a caller still holds the units completed
    before an aborting error.
    """

    def __init__(
        self,
        schedule: Sequence[RunUnit],
        executor: Executor,
        target_url: str,
        clock: Clock = utc_now,
        journal: Optional[JournalWriter] = None,
        capture: Optional[CaptureBinding] = None,
    ):
        self.schedule = tuple(schedule)
        self.executor = executor
        self.target_url = target_url
        self.clock = clock
        self.journal = journal
        self.capture = capture
        self.completed: List[RunUnit] = []
        self.executed_count = 0
        self.qualifying_by_context: Dict[Context, int] = {context: 0 for context in Context}
        # Contexts whose units are all pre-skipped can never become sufficient.
        self.contexts = {unit.context or Context.DESKTOP for unit in self.schedule if not unit.skipped}

    @property
    def qualifying_confirmations(self) -> int:
        return sum(self.qualifying_by_context.values())

    def context_sufficient(self, context: Context) -> bool:
        return self.qualifying_by_context[context] >= SUFFICIENCY_THRESHOLD

    @property
    def sufficiency_reached(self) -> bool:
        """True once every context with executable units holds enough qualifying outcomes."""
        return bool(self.contexts) and all(self.context_sufficient(c) for c in self.contexts)

    def run(self) -> List[RunUnit]:
        for scheduled in self.schedule:
            if self.sufficiency_reached:
                logger.info(
                    "Sufficiency reached after %d executed units; %d scheduled units not run",
                    self.executed_count,
                    len(self.schedule) - len(self.completed),
                )
                break
            if self.executed_count >= RUN_CAP:
                break
            if not scheduled.skipped and self.context_sufficient(scheduled.context or Context.DESKTOP):
                logger.debug("%s not run: context already sufficient", scheduled.unit_key)
                continue
            self._record(self._resolve(scheduled))
        return self.completed

    def _resolve(self, scheduled: RunUnit) -> RunUnit:
        unit = scheduled.model_copy(deep=True)
        unit.started_at = self.clock()

        if unit.skipped:
            logger.debug("%s pre-skipped: %s", unit.unit_key, unit.note)
            unit.finished_at = self.clock()
            return unit

        self.executed_count += 1
        try:
            label = self.executor.execute(unit, self.target_url, self.capture)
        except ExecutionFailure as e:
            logger.warning("%s execution failed, recording HARDCRASH: %s", unit.unit_key, e)
            label = Outcome.CONSTRAINED
            unit.constraint_class = ConstraintClass.HARDCRASH
            unit.note = None

        unit.outcome = validate_outcome(label)

        if unit.outcome is Outcome.CONSTRAINED:
            try:
                constraint_class = validate_constraint_class(unit.constraint_class)
            except InvalidConstraintClass:
                constraint_class = None
            if constraint_class is None:
                logger.warning(
                    "%s returned Constrained with unmapped class %r; downgrading",
                    unit.unit_key,
                    unit.constraint_class,
                )
                unit.outcome = Outcome.INSUFFICIENT
                unit.note = NOTE_UNMAPPED_CONSTRAINT
            unit.constraint_class = constraint_class
        else:
            unit.constraint_class = None

        unit.note = enforce_note(unit.outcome, unit.note, False)

        if unit.outcome.is_qualifying:
            self.qualifying_by_context[unit.context or Context.DESKTOP] += 1

        unit.finished_at = self.clock()
        logger.info("%s %s: %s", unit.unit_key, unit.context.value if unit.context else "-", unit.outcome.value)
        return unit

    def _record(self, unit: RunUnit) -> None:
        # Re-validating freezes the completed record against later mutation of the working copy.
        frozen = RunUnit.model_validate(unit.model_dump(exclude={"unit_key"}))
        self.completed.append(frozen)
        if self.journal is not None:
            self.journal.append({
                "type": "RUN_UNIT",
                "timestamp": frozen.finished_at,
                "unit": frozen.model_dump(mode="json"),
            })


def execute_schedule(
    schedule: Sequence[RunUnit],
    executor: Executor,
    target_url: str,
    clock: Clock = utc_now,
    journal: Optional[JournalWriter] = None,
    capture: Optional[CaptureBinding] = None,
) -> ScheduleExecution:
    """Execute ``schedule`` and return the finished execution state."""
    execution = ScheduleExecution(
        schedule, executor, target_url, clock=clock, journal=journal, capture=capture,
    )
    execution.run()
    return execution


def _load_run_units(config: IntakeConfig) -> List[RunUnit]:
    if config.run_units is not None:
        records = [record.model_dump() for record in config.run_units]
        units = run_units_from_records(records, config.target_domain)
    else:
        units = normalize_to_run_units(config.complaint_groups, config.target_domain)
    validate_atomicity(units)
    return units


def _build_results(
    config: IntakeConfig,
    determination: DeterminationResult,
    execution: ScheduleExecution,
    mobile_in_scope: bool,
    mobile_anchor_phrase: Optional[str],
    generated_utc: str,
    aborted: bool = False,
) -> tuple:
    internal = InternalIntakeResult(
        target_domain=config.target_domain,
        target_url=config.target_url,
        determination=determination.category,
        determination_note=determination.note,
        mobile_in_scope=mobile_in_scope,
        mobile_anchor_phrase=mobile_anchor_phrase,
        total_runs_executed=execution.executed_count,
        qualifying_confirmations=execution.qualifying_confirmations,
        sufficiency_reached=execution.sufficiency_reached,
        run_cap=RUN_CAP,
        runs=execution.completed,
        aborted=aborted,
        generated_utc=generated_utc,
    )
    external = ExternalIntakeResult.model_validate(
        filter_for_external(internal.model_dump(mode="json"))
    )
    assert_no_banned_vocabulary(canonical_dumps(external.model_dump(mode="json")))
    return internal, external


def run_intake(
    config: IntakeConfig,
    executor: Optional[Executor],
    clock: Optional[Clock] = None,
) -> IntakeOutcome:
    """Run a complete intake and write its artifacts into ``config.output_dir``.

    Validation errors raised before the run starts propagate with nothing
    written. Once the run has started, any error still leaves a fail-closed
    determination, result records and a ``RUN_ABORTED`` journal entry behind
    before it is re-raised.

    Raises:
        IntakeConfigError: missing executor, output directory or inputs
        PacketAlreadySealed: ``output_dir`` already carries a packet hash
        BannedVocabulary: ``target_domain`` would put prohibited words in the
            client-facing record
        IntakeValidationError: malformed assertions, invalid outcome labels
            or note gate violations
    """
    clock = clock or utc_now
    if executor is None:
        raise IntakeConfigError("an executor is required.")
    config.require_inputs()

    run_units = _load_run_units(config)
    anchor = detect_anchor(config.complaint_materials)
    schedule = build_schedule(run_units, anchor.mobile_in_scope)

    output_dir = Path(config.output_dir)
    if (output_dir / PACKET_HASH_FILENAME).exists():
        raise PacketAlreadySealed(str(output_dir))
    output_dir.mkdir(parents=True, exist_ok=True)
    journal = JournalWriter.resume(output_dir / JOURNAL_FILENAME)

    logger.info(
        "Starting intake for %s: %d run units, %d scheduled, mobile in scope: %s",
        config.target_url,
        len(run_units),
        len(schedule),
        anchor.mobile_in_scope,
    )
    journal.append({
        "type": "RUN_START",
        "timestamp": clock(),
        "target_url": config.target_url,
        "target_domain": config.target_domain,
        "mobile_in_scope": anchor.mobile_in_scope,
        "mobile_anchor_phrase": anchor.anchor_phrase,
        "run_unit_count": len(run_units),
    })
    journal.append({
        "type": "SCHEDULE_BUILT",
        "timestamp": clock(),
        "order": [unit.unit_key for unit in schedule],
        "pre_skipped": [unit.unit_key for unit in schedule if unit.skipped],
        "run_cap": RUN_CAP,
    })

    capture = CaptureBinding(journal, config.capture_scope, output_dir, clock=clock)
    execution = ScheduleExecution(
        schedule, executor, config.target_url, clock=clock, journal=journal, capture=capture,
    )
    try:
        execution.run()
        determination = compute_determination(execution.completed, anchor.mobile_in_scope)
        internal, external = _build_results(
            config, determination, execution, anchor.mobile_in_scope, anchor.anchor_phrase, clock(),
        )
    except Exception as e:
        logger.error("Intake aborted after %d executed units: %s", execution.executed_count, e)
        aborted = DeterminationResult(category=Determination.NOT_ELIGIBLE, note=NOTE_RUN_ABORTED)
        journal.append({
            "type": "RUN_ABORTED",
            "timestamp": clock(),
            "error": type(e).__name__,
            "message": str(e),
            "completed_units": len(execution.completed),
        })
        write_determination(output_dir, aborted)
        write_run_results(output_dir, execution.completed)
        internal, external = _build_results(
            config, aborted, execution, anchor.mobile_in_scope, anchor.anchor_phrase,
            clock(), aborted=True,
        )
        write_intake_results(output_dir, internal, external)
        raise

    journal.append({
        "type": "DETERMINATION",
        "timestamp": clock(),
        "category": determination.category.value,
        "note": determination.note,
    })
    logger.info("Determination: %s", determination.category.value)

    write_determination(output_dir, determination)
    write_run_results(output_dir, execution.completed)
    write_intake_results(output_dir, internal, external)

    return IntakeOutcome(
        internal=internal,
        external=external,
        output_dir=str(output_dir),
        journal_head=journal.prev_hash,
    )
