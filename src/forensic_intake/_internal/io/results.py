"""Writers for intake result artifacts."""

import logging
from pathlib import Path
from typing import List

from forensic_intake._internal.canonical_json import pretty_dumps
from forensic_intake._internal.io.packet_store import write_atomic
from forensic_intake.contracts import ExternalIntakeResult, InternalIntakeResult
from forensic_intake.kernel.determination import DeterminationResult
from forensic_intake.kernel.run_unit import RunUnit

logger = logging.getLogger(__name__)

DETERMINATION_FILENAME = "determination.json"
RUN_RESULTS_FILENAME = "run_results.json"
INTERNAL_RESULT_FILENAME = "intake_internal.json"
EXTERNAL_RESULT_FILENAME = "intake_external.json"


def write_determination(output_dir: Path, determination: DeterminationResult) -> Path:
    path = output_dir / DETERMINATION_FILENAME
    write_atomic(path, pretty_dumps(determination.model_dump(mode="json")))
    logger.debug("Wrote %s", path)
    return path


def write_run_results(output_dir: Path, run_units: List[RunUnit]) -> Path:
    path = output_dir / RUN_RESULTS_FILENAME
    write_atomic(path, pretty_dumps([unit.model_dump(mode="json") for unit in run_units]))
    logger.debug("Wrote %s (%d units)", path, len(run_units))
    return path


def write_intake_results(
    output_dir: Path,
    internal: InternalIntakeResult,
    external: ExternalIntakeResult,
) -> None:
    write_atomic(output_dir / INTERNAL_RESULT_FILENAME, pretty_dumps(internal.model_dump(mode="json")))
    write_atomic(output_dir / EXTERNAL_RESULT_FILENAME, pretty_dumps(external.model_dump(mode="json")))
    logger.debug("Wrote internal and external intake results to %s", output_dir)
