"""Hash-chained evidentiary journal: pure append and verification.

Each entry binds its event to every entry before it:

    hash = SHA-256(prev_hash || canonical_json(data))

Entry 0 links to GENESIS_HASH. Appending never touches an existing entry and
verification is stateless, so the writer and an independent auditor run the
same code.
"""

from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from forensic_intake.codes import IntakeCode

from .errors import JournalIntegrityError
from .hash_utils import CanonicalizationError, canonicalize, canonicalize_json, sha256_hex


GENESIS_HASH = "0" * 32


class JournalEntry(BaseModel):
    """One line of ``journal.ndjson``."""
    prev_hash: str = Field(..., alias="prevHash")
    data: Dict[str, Any]
    hash: str

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        return {"prevHash": self.prev_hash, "data": self.data, "hash": self.hash}


class ChainVerification(BaseModel):
    ok: bool
    verified_count: int
    failure_index: Optional[int] = None
    code: Optional[IntakeCode] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    reason: Optional[str] = None
    head: str = GENESIS_HASH

    model_config = ConfigDict(frozen=True)

    def raise_for_failure(self) -> None:
        if not self.ok:
            raise JournalIntegrityError(
                self.code or IntakeCode.JOURNAL_HASH_MISMATCH,
                self.reason or "journal verification failed",
                index=self.failure_index,
                expected=self.expected,
                actual=self.actual,
            )


def chain_hash(prev_hash: str, data: Any) -> str:
    return sha256_hex(prev_hash + canonicalize_json(data))


def append_entry(prev_hash: str, data: Dict[str, Any]) -> JournalEntry:
    """Create the entry that follows ``prev_hash``.

    ``data`` is stored in canonical (key-sorted, NFC) form.

    Raises:
        CanonicalizationError: if ``data`` holds floats or non-JSON values
    """
    if not isinstance(data, dict):
        raise CanonicalizationError(f"journal event must be an object, got {type(data).__name__}")
    canonical = canonicalize(data)
    return JournalEntry(prev_hash=prev_hash, data=canonical, hash=chain_hash(prev_hash, canonical))


def _field(entry: Any, *names: str) -> Any:
    if isinstance(entry, JournalEntry):
        entry = entry.to_record()
    if not isinstance(entry, dict):
        return None
    for name in names:
        if name in entry:
            return entry[name]
    return None


def verify_chain(entries: Iterable[Any], genesis: str = GENESIS_HASH) -> ChainVerification:
    """Replay ``entries`` from ``genesis`` and stop at the first divergence.

    Entries may be JournalEntry models or parsed journal lines.
    """
    prev = genesis
    count = 0
    for index, entry in enumerate(entries):
        stored_prev = _field(entry, "prevHash", "prev_hash")
        data = _field(entry, "data")
        stored_hash = _field(entry, "hash")

        if not isinstance(data, dict) or not isinstance(stored_hash, str) or not isinstance(stored_prev, str):
            return ChainVerification(
                ok=False, verified_count=count, failure_index=index,
                code=IntakeCode.JOURNAL_MALFORMED,
                reason=f"entry {index} is missing prevHash, data or hash",
                head=prev,
            )

        if stored_prev != prev:
            return ChainVerification(
                ok=False, verified_count=count, failure_index=index,
                code=IntakeCode.JOURNAL_CHAIN_BROKEN,
                expected=prev, actual=stored_prev,
                reason=f"entry {index} prevHash does not link to the previous entry",
                head=prev,
            )

        try:
            recomputed = chain_hash(prev, data)
        except CanonicalizationError as e:
            return ChainVerification(
                ok=False, verified_count=count, failure_index=index,
                code=IntakeCode.JOURNAL_MALFORMED,
                reason=f"entry {index} data is not canonical JSON: {e}",
                head=prev,
            )

        if recomputed != stored_hash:
            return ChainVerification(
                ok=False, verified_count=count, failure_index=index,
                code=IntakeCode.JOURNAL_HASH_MISMATCH,
                expected=recomputed, actual=stored_hash,
                reason=f"entry {index} hash mismatch",
                head=prev,
            )

        prev = stored_hash
        count += 1

    return ChainVerification(ok=True, verified_count=count, head=prev)
