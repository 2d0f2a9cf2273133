"""Packet directory walk, index build and write-once sealing."""

import hashlib
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from forensic_intake.codes import IntakeCode
from forensic_intake._internal.canonical_json import canonical_dumps, pretty_dumps
from forensic_intake._internal.io.journal_log import JOURNAL_FILENAME, read_journal
from forensic_intake.kernel.errors import JournalIntegrityError, PacketAlreadySealed, PacketIntegrityError
from forensic_intake.kernel.packet import (
    INDEX_FILENAME,
    MANIFEST_FILENAME,
    MANIFEST_SCHEMA,
    PACKET_HASH_FILENAME,
    TEMP_SUFFIX,
    compute_packet_hash,
    is_excluded,
    sorted_index,
)

logger = logging.getLogger(__name__)

TOOLCHAIN_ID = "forensic-intake"


class SealResult(BaseModel):
    packet_hash: str
    index_path: str
    packet_hash_path: str
    manifest_path: str
    file_count: int


def file_sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def walk_files(directory: Path) -> Dict[str, Path]:
    """Map POSIX-relative path -> absolute path for every non-excluded file."""
    found: Dict[str, Path] = {}
    for root, dirs, files in os.walk(directory):
        dirs.sort()
        for name in sorted(files):
            full = Path(root) / name
            relpath = full.relative_to(directory).as_posix()
            if is_excluded(relpath):
                continue
            found[relpath] = full
    return found


def build_index(directory: Union[str, os.PathLike]) -> Dict[str, str]:
    """Flat path -> SHA-256 map over a finalized evidence directory, sorted by path."""
    directory = Path(directory)
    return sorted_index({rel: file_sha256(full) for rel, full in walk_files(directory).items()})


def write_atomic(path: Path, content: str) -> None:
    """Write ``content`` via a temp file, fsync, then rename into place."""
    tmp = path.with_name(path.name + TEMP_SUFFIX)
    with open(tmp, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


def _first_env_event(directory: Path) -> Optional[Dict[str, Any]]:
    journal_path = directory / JOURNAL_FILENAME
    if not journal_path.exists():
        return None
    try:
        records = read_journal(journal_path)
    except JournalIntegrityError as e:
        logger.warning("Journal unreadable while building manifest: %s", e)
        return None
    for record in records:
        data = record.get("data")
        if isinstance(data, dict) and data.get("type") == "ENV":
            return data
    return None


def seal_directory(
    directory: Union[str, os.PathLike],
    env: Optional[Dict[str, Any]] = None,
) -> SealResult:
    """Seal a finalized evidence directory.

    Writes ``manifest.json`` first so the index covers it, then ``index.json``
    and, last, ``packet_hash.txt``. Sealing is write-once: if
    ``packet_hash.txt`` exists nothing is written.

    Raises:
        FileNotFoundError: if ``directory`` does not exist
        PacketAlreadySealed: if the directory already carries a packet hash
        PacketIntegrityError: if an unsealed directory already holds a manifest
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Packet directory not found: {directory}")

    packet_hash_path = directory / PACKET_HASH_FILENAME
    if packet_hash_path.exists():
        raise PacketAlreadySealed(str(directory))

    manifest_path = directory / MANIFEST_FILENAME
    if manifest_path.exists():
        raise PacketIntegrityError(
            IntakeCode.INVALID_STRUCTURE,
            f"{MANIFEST_FILENAME} already exists in an unsealed packet: {directory}",
            path=MANIFEST_FILENAME,
        )

    manifest = {
        "schema": MANIFEST_SCHEMA,
        "toolchain_id": TOOLCHAIN_ID,
        "artifact_dir_hint": directory.name,
        "evidence_file_count": len(walk_files(directory)),
        "env": env if env is not None else _first_env_event(directory),
    }
    write_atomic(manifest_path, pretty_dumps(manifest))

    index = build_index(directory)
    packet_hash = compute_packet_hash(index)

    index_path = directory / INDEX_FILENAME
    write_atomic(index_path, canonical_dumps(index) + "\n")
    write_atomic(packet_hash_path, packet_hash + "\n")

    logger.info("Sealed %s: %d files, packet hash %s", directory, len(index), packet_hash)
    return SealResult(
        packet_hash=packet_hash,
        index_path=str(index_path),
        packet_hash_path=str(packet_hash_path),
        manifest_path=str(manifest_path),
        file_count=len(index),
    )
