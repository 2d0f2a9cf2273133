"""Append-only ``journal.ndjson`` writer and reader."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Union

from forensic_intake.codes import IntakeCode
from forensic_intake.kernel.errors import JournalIntegrityError
from forensic_intake.kernel.hash_utils import canonicalize_json
from forensic_intake.kernel.journal import (
    GENESIS_HASH,
    ChainVerification,
    JournalEntry,
    append_entry,
    verify_chain,
)

logger = logging.getLogger(__name__)

JOURNAL_FILENAME = "journal.ndjson"


def read_journal(path: Union[str, os.PathLike]) -> List[Dict[str, Any]]:
    """Parse every line of a journal file.

    Raises:
        FileNotFoundError: if the journal does not exist
        JournalIntegrityError: if a line is not a JSON object
    """
    path = Path(path)
    records: List[Dict[str, Any]] = []
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise JournalIntegrityError(
                    IntakeCode.JOURNAL_MALFORMED,
                    f"{path.name} line {lineno + 1} is not valid JSON: {e.msg}",
                    index=len(records),
                ) from e
            if not isinstance(record, dict):
                raise JournalIntegrityError(
                    IntakeCode.JOURNAL_MALFORMED,
                    f"{path.name} line {lineno + 1} is not a JSON object",
                    index=len(records),
                )
            records.append(record)
    return records


def verify_journal_file(path: Union[str, os.PathLike]) -> ChainVerification:
    return verify_chain(read_journal(path))


class JournalWriter:
    """Owns one journal file and its chain head.

    A writer is the only appender for its file; entries are written one
    canonical JSON line at a time and flushed to disk before ``append`` returns.
    """

    def __init__(self, path: Union[str, os.PathLike], prev_hash: str = GENESIS_HASH):
        self.path = Path(path)
        self.prev_hash = prev_hash
        self.count = 0

    @classmethod
    def resume(cls, path: Union[str, os.PathLike]) -> "JournalWriter":
        """Continue an existing journal after verifying it from genesis.

        A missing file starts a new chain. A journal that fails verification
        is never extended.
        """
        path = Path(path)
        if not path.exists():
            return cls(path)
        verification = verify_journal_file(path)
        verification.raise_for_failure()
        writer = cls(path, prev_hash=verification.head)
        writer.count = verification.verified_count
        logger.debug("Resuming journal %s at entry %d", path, writer.count)
        return writer

    def append(self, data: Dict[str, Any]) -> JournalEntry:
        entry = append_entry(self.prev_hash, data)
        line = canonicalize_json(entry.to_record())
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()
            os.fsync(f.fileno())
        self.prev_hash = entry.hash
        self.count += 1
        logger.debug("Journal %s entry %d: %s", self.path.name, self.count - 1, data.get("type"))
        return entry
