"""Error and issue code constants for forensic_intake.

These constants prevent stringly-typed error codes and ensure
client code uses the correct codes when matching failures.
"""

from enum import Enum


class IntakeCode(str, Enum):
    """Error and warning codes."""

    # Validation errors (raised immediately, never downgraded)
    INVALID_OUTCOME = "INVALID_OUTCOME"
    INVALID_CONSTRAINT_CLASS = "INVALID_CONSTRAINT_CLASS"
    INVALID_COMPLAINT_GROUP = "INVALID_COMPLAINT_GROUP"
    INVALID_ASSERTION = "INVALID_ASSERTION"
    ATOMICITY_VIOLATION = "ATOMICITY_VIOLATION"
    NOTE_PROHIBITED = "NOTE_PROHIBITED"
    NOTE_TOO_LONG = "NOTE_TOO_LONG"
    NOTE_MULTI_LINE = "NOTE_MULTI_LINE"
    NOTE_MULTI_SENTENCE = "NOTE_MULTI_SENTENCE"
    INTAKE_CONFIG = "INTAKE_CONFIG"
    BANNED_VOCABULARY = "BANNED_VOCABULARY"
    OUT_OF_SCOPE_SELECTOR = "OUT_OF_SCOPE_SELECTOR"

    # Execution failures (contained to one run unit)
    EXECUTION_FAILED = "EXECUTION_FAILED"
    EXECUTION_TIMEOUT = "EXECUTION_TIMEOUT"
    SETTLE_TIMEOUT = "SETTLE_TIMEOUT"

    # Integrity failures (always fatal)
    JOURNAL_HASH_MISMATCH = "JOURNAL_HASH_MISMATCH"
    JOURNAL_CHAIN_BROKEN = "JOURNAL_CHAIN_BROKEN"
    JOURNAL_MALFORMED = "JOURNAL_MALFORMED"
    ALREADY_SEALED = "ALREADY_SEALED"
    CORRUPTED_ARTIFACT = "CORRUPTED_ARTIFACT"
    MISSING_ARTIFACT = "MISSING_ARTIFACT"
    TAMPERED_SEAL = "TAMPERED_SEAL"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    INVALID_STRUCTURE = "INVALID_STRUCTURE"

    # Warnings (non-blocking)
    UNINDEXED_ARTIFACT = "UNINDEXED_ARTIFACT"
