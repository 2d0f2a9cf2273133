"""Packet index rules and packet hash derivation.

Pure half of the sealer: the directory walk and file reads live in
``_internal.io.packet_store``.
"""

from typing import Dict, List, Mapping, NamedTuple, Optional

from forensic_intake.codes import IntakeCode

from .hash_utils import canonicalize_json, is_sha256_hex, sha256_hex


INDEX_FILENAME = "index.json"
PACKET_HASH_FILENAME = "packet_hash.txt"
MANIFEST_FILENAME = "manifest.json"
MANIFEST_SCHEMA = "AF_PACKET_MANIFEST_V1"

# The index and the hash never index themselves. The manifest is written
# before the index and is covered by it.
EXCLUDED_FILENAMES = frozenset({INDEX_FILENAME, PACKET_HASH_FILENAME})
TEMP_SUFFIX = ".tmp"


class IndexDivergence(NamedTuple):
    code: IntakeCode
    path: str
    expected: Optional[str]
    actual: Optional[str]


def is_excluded(relpath: str) -> bool:
    """True for seal artifacts at the packet root and for temp files anywhere."""
    if relpath.endswith(TEMP_SUFFIX):
        return True
    return "/" not in relpath and relpath in EXCLUDED_FILENAMES


def sorted_index(entries: Mapping[str, str]) -> Dict[str, str]:
    return {path: entries[path] for path in sorted(entries)}


def compute_packet_hash(index: Mapping[str, str]) -> str:
    """SHA-256 of the canonical JSON form of ``index``."""
    return sha256_hex(canonicalize_json(dict(index)))


def compare_index(stored: Mapping[str, str], actual: Mapping[str, Optional[str]]) -> List[IndexDivergence]:
    """Compare the persisted index against recomputed file hashes.

    ``actual`` maps every path found on disk to its hash; an indexed path
    mapped to None (or absent) is missing. Paths on disk that the index does
    not list are reported as unindexed.
    """
    divergences: List[IndexDivergence] = []
    for path in sorted(stored):
        expected = stored[path]
        got = actual.get(path)
        if got is None:
            divergences.append(IndexDivergence(IntakeCode.MISSING_ARTIFACT, path, expected, None))
        elif got != expected:
            divergences.append(IndexDivergence(IntakeCode.CORRUPTED_ARTIFACT, path, expected, got))
    for path in sorted(actual):
        if path not in stored and actual[path] is not None:
            divergences.append(IndexDivergence(IntakeCode.UNINDEXED_ARTIFACT, path, None, actual[path]))
    return divergences


def validate_index_shape(index: object) -> List[str]:
    """Return problems with a loaded index (empty when it is a flat path->sha256 map)."""
    if not isinstance(index, dict):
        return ["index must be a JSON object"]
    problems = []
    for path, digest in index.items():
        if not isinstance(digest, str) or not is_sha256_hex(digest):
            problems.append(f"index entry {path!r} is not a 64-character SHA-256 hex digest")
    return problems
