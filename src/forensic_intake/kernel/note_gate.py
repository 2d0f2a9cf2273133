"""Note gate: outcome-dependent policy for free-text run unit notes.

The gate only accepts or rejects. It never truncates, rewrites or otherwise
repairs a note; a rejected note carries a reason string naming the rule.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from forensic_intake.codes import IntakeCode

from .errors import NoteGateViolation, NotePermittedViolation
from .taxonomy import NOTE_MAX_LENGTH, validate_outcome


class NoteGateResult(BaseModel):
    valid: bool
    reason: Optional[str] = None
    sanitized: Optional[str] = None
    code: Optional[IntakeCode] = None

    model_config = ConfigDict(frozen=True)


def _rejected(code: IntakeCode, detail: str) -> NoteGateResult:
    return NoteGateResult(valid=False, reason=f"{code.value}: {detail}", code=code)


def validate_note(
    outcome: Any,
    note_text: Optional[str],
    is_primary_only_determination: bool = False,
) -> NoteGateResult:
    """Check ``note_text`` against the note policy for ``outcome``.

    Notes are allowed for Constrained and Insufficient outcomes, or for any
    outcome when the run's determination is the desktop-only category (the
    note then explains why the mobile context was excluded).
    """
    outcome = validate_outcome(outcome)
    note_allowed = outcome.allows_note or is_primary_only_determination is True
    text = "" if note_text is None else str(note_text)

    if not note_allowed:
        if text.strip():
            return _rejected(
                IntakeCode.NOTE_PROHIBITED,
                f'notes not allowed for outcome "{outcome.value}"',
            )
        return NoteGateResult(valid=True)

    trimmed = text.strip()
    if not trimmed:
        return NoteGateResult(valid=True)

    if len(trimmed) > NOTE_MAX_LENGTH:
        return _rejected(
            IntakeCode.NOTE_TOO_LONG,
            f"{len(trimmed)} chars exceeds {NOTE_MAX_LENGTH} limit.",
        )

    if "\n" in trimmed or "\r" in trimmed:
        return _rejected(IntakeCode.NOTE_MULTI_LINE, "notes must be a single line.")

    periods = trimmed.count(".")
    if periods > 1:
        return _rejected(
            IntakeCode.NOTE_MULTI_SENTENCE,
            f"found {periods} periods, max is 1.",
        )

    return NoteGateResult(valid=True, sanitized=trimmed)


def enforce_note(
    outcome: Any,
    note_text: Optional[str],
    is_primary_only_determination: bool = False,
) -> Optional[str]:
    """Return the sanitized note or raise the matching named violation."""
    result = validate_note(outcome, note_text, is_primary_only_determination)
    if result.valid:
        return result.sanitized
    if result.code is IntakeCode.NOTE_PROHIBITED:
        raise NotePermittedViolation(result.reason)
    raise NoteGateViolation(result.code, result.reason)
