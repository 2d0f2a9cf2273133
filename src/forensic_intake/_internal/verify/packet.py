"""Sealed packet verification against the files on disk."""

import json
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional

from forensic_intake.codes import IntakeCode
from forensic_intake._internal.io.packet_store import walk_files, file_sha256
from forensic_intake.kernel.errors import PacketIntegrityError
from forensic_intake.kernel.packet import (
    INDEX_FILENAME,
    PACKET_HASH_FILENAME,
    compare_index,
    compute_packet_hash,
    validate_index_shape,
)


class PacketIssue(NamedTuple):
    code: IntakeCode
    message: str
    path: Optional[str] = None
    expected: Optional[str] = None
    actual: Optional[str] = None

    @property
    def is_warning(self) -> bool:
        return self.code is IntakeCode.UNINDEXED_ARTIFACT


def load_seal(packet_dir: Path) -> tuple:
    """Load ``(index, stored_packet_hash)``.

    Raises:
        PacketIntegrityError: if either seal file is missing or unreadable
    """
    index_path = packet_dir / INDEX_FILENAME
    hash_path = packet_dir / PACKET_HASH_FILENAME
    for required in (index_path, hash_path):
        if not required.exists():
            raise PacketIntegrityError(
                IntakeCode.FILE_NOT_FOUND,
                f"{required.name} not found in {packet_dir}",
                path=required.name,
            )

    try:
        index = json.loads(index_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PacketIntegrityError(
            IntakeCode.INVALID_STRUCTURE,
            f"{INDEX_FILENAME} is not valid JSON: {e.msg}",
            path=INDEX_FILENAME,
        ) from e

    problems = validate_index_shape(index)
    if problems:
        raise PacketIntegrityError(IntakeCode.INVALID_STRUCTURE, "; ".join(problems), path=INDEX_FILENAME)

    return index, hash_path.read_text(encoding="utf-8").strip()


def verify_packet_directory(packet_dir: Path) -> List[PacketIssue]:
    """Recompute every indexed hash and the packet hash; report every divergence.

    Raises:
        PacketIntegrityError: if the seal files themselves cannot be loaded
    """
    index, stored_hash = load_seal(packet_dir)
    issues: List[PacketIssue] = []

    on_disk: Dict[str, Optional[str]] = {
        rel: file_sha256(full) for rel, full in walk_files(packet_dir).items()
    }

    for div in compare_index(index, on_disk):
        if div.code is IntakeCode.MISSING_ARTIFACT:
            message = f"Indexed file missing: {div.path}"
        elif div.code is IntakeCode.CORRUPTED_ARTIFACT:
            message = f"Corrupted artifact {div.path}. Expected {div.expected}, got {div.actual}"
        else:
            message = f"File present but not indexed: {div.path}"
        issues.append(PacketIssue(div.code, message, div.path, div.expected, div.actual))

    recomputed = compute_packet_hash(index)
    if recomputed != stored_hash:
        issues.append(PacketIssue(
            IntakeCode.TAMPERED_SEAL,
            f"Packet hash mismatch. Expected {stored_hash}, index hashes to {recomputed}",
            PACKET_HASH_FILENAME,
            stored_hash,
            recomputed,
        ))

    return issues
