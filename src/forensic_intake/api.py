"""Public API for the forensic_intake package.

High-level functions that return complete, structured results.
Callers should use these functions instead of importing from _internal.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from forensic_intake.codes import IntakeCode
from forensic_intake.config import IntakeConfig, intake_config_from_dict, load_intake_config
from forensic_intake.contracts import IntakeOutcome
from forensic_intake.kernel.errors import JournalIntegrityError, PacketIntegrityError
from forensic_intake.orchestrator import Clock, Executor
from forensic_intake.orchestrator import run_intake as _run_intake
from forensic_intake._internal.io.packet_store import SealResult, seal_directory


def _normalize_path(path: Union[str, os.PathLike, Path]) -> Path:
    """Normalize path input to Path object."""
    return Path(path) if not isinstance(path, Path) else path


class ValidationIssue(BaseModel):
    """A single verification issue (error or warning)."""
    code: str  # IntakeCode value, e.g. "CORRUPTED_ARTIFACT", "JOURNAL_HASH_MISMATCH"
    message: str
    path: Optional[str] = None  # packet-relative path the issue refers to
    index: Optional[int] = None  # journal entry position for journal issues
    expected: Optional[str] = None
    actual: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of a verification check."""
    ok: bool  # True if no errors (warnings don't block)
    errors: List[ValidationIssue]  # Blocking issues
    warnings: List[ValidationIssue]  # Non-blocking issues


def run_intake(
    config: Union[IntakeConfig, Dict[str, Any], str, os.PathLike, Path],
    executor: Optional[Executor],
    clock: Optional[Clock] = None,
) -> IntakeOutcome:
    """
    Run an intake: normalize assertions, schedule, execute, determine, write artifacts.

    Args:
        config: IntakeConfig, a config dict, or a path to a JSON config file
        executor: Executor capability that runs one unit in an isolated session
        clock: Optional callable returning ISO-8601 UTC timestamps

    Returns:
        IntakeOutcome with the internal and external result records
    """
    if isinstance(config, dict):
        config = intake_config_from_dict(config)
    elif not isinstance(config, IntakeConfig):
        config = load_intake_config(_normalize_path(config))
    return _run_intake(config, executor, clock=clock)


def seal_packet(
    packet_dir: Union[str, os.PathLike, Path],
    env: Optional[Dict[str, Any]] = None,
) -> SealResult:
    """
    Seal a finalized evidence directory (write-once).

    Raises:
        PacketAlreadySealed: if ``packet_hash.txt`` already exists
        PacketIntegrityError: if an unsealed directory already holds ``manifest.json``
    """
    return seal_directory(_normalize_path(packet_dir), env=env)


def verify_packet(packet_dir: Union[str, os.PathLike, Path]) -> ValidationResult:
    """
    Verify a sealed packet: every indexed file against its hash, and the index against the packet hash.
    """
    from forensic_intake._internal.verify.packet import verify_packet_directory

    packet_dir = _normalize_path(packet_dir)
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    if not packet_dir.is_dir():
        errors.append(ValidationIssue(
            code=IntakeCode.FILE_NOT_FOUND.value,
            message=f"Packet directory not found: {packet_dir}",
        ))
        return ValidationResult(ok=False, errors=errors, warnings=warnings)

    try:
        issues = verify_packet_directory(packet_dir)
    except PacketIntegrityError as e:
        errors.append(ValidationIssue(
            code=e.code.value,
            message=e.message,
            path=e.path,
            expected=e.expected,
            actual=e.actual,
        ))
        return ValidationResult(ok=False, errors=errors, warnings=warnings)

    for issue in issues:
        target = warnings if issue.is_warning else errors
        target.append(ValidationIssue(
            code=issue.code.value,
            message=issue.message,
            path=issue.path,
            expected=issue.expected,
            actual=issue.actual,
        ))

    return ValidationResult(ok=len(errors) == 0, errors=errors, warnings=warnings)


def verify_journal(journal_path: Union[str, os.PathLike, Path]) -> ValidationResult:
    """
    Replay a journal from genesis; report the first divergence, if any.
    """
    from forensic_intake._internal.io.journal_log import verify_journal_file

    journal_path = _normalize_path(journal_path)
    errors: List[ValidationIssue] = []

    try:
        verification = verify_journal_file(journal_path)
    except FileNotFoundError as e:
        errors.append(ValidationIssue(
            code=IntakeCode.FILE_NOT_FOUND.value,
            message=str(e),
        ))
        return ValidationResult(ok=False, errors=errors, warnings=[])
    except JournalIntegrityError as e:
        errors.append(ValidationIssue(
            code=e.code.value,
            message=e.message,
            index=e.index,
        ))
        return ValidationResult(ok=False, errors=errors, warnings=[])

    if not verification.ok:
        errors.append(ValidationIssue(
            code=verification.code.value,
            message=verification.reason or "journal verification failed",
            index=verification.failure_index,
            expected=verification.expected,
            actual=verification.actual,
        ))

    return ValidationResult(ok=len(errors) == 0, errors=errors, warnings=[])


__all__ = [
    "ValidationIssue",
    "ValidationResult",
    "run_intake",
    "seal_packet",
    "verify_packet",
    "verify_journal",
]
