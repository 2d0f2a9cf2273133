"""forensic_intake: bounded intake orchestration + tamper-evident evidence packets."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("forensic-intake")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from forensic_intake.api import (
    ValidationIssue,
    ValidationResult,
    run_intake,
    seal_packet,
    verify_journal,
    verify_packet,
)
from forensic_intake.codes import IntakeCode
from forensic_intake.config import CaptureScope, IntakeConfig
from forensic_intake.contracts import ExternalIntakeResult, IntakeOutcome, InternalIntakeResult

__all__ = [
    "__version__",
    "run_intake",
    "seal_packet",
    "verify_packet",
    "verify_journal",
    "ValidationIssue",
    "ValidationResult",
    "IntakeCode",
    "IntakeConfig",
    "CaptureScope",
    "IntakeOutcome",
    "InternalIntakeResult",
    "ExternalIntakeResult",
]
