"""Tests for packet sealing and verification."""

import json

import pytest

from forensic_intake.api import seal_packet, verify_packet
from forensic_intake.codes import IntakeCode
from forensic_intake.kernel.errors import PacketAlreadySealed, PacketIntegrityError
from forensic_intake.kernel.hash_utils import canonicalize_json, sha256_hex
from forensic_intake.kernel.packet import (
    MANIFEST_SCHEMA,
    compare_index,
    compute_packet_hash,
    is_excluded,
    validate_index_shape,
)
from forensic_intake._internal.io.journal_log import JournalWriter
from forensic_intake._internal.io.packet_store import build_index


def _make_evidence(root):
    root.mkdir(parents=True, exist_ok=True)
    (root / "determination.json").write_text('{"category": "x"}\n', encoding="utf-8")
    (root / "captures").mkdir()
    (root / "captures" / "step-1.png").write_bytes(b"\x89PNG\r\n")
    return root


def _codes(issues):
    return [issue.code for issue in issues]


class TestPacketRules:
    """Tests for the pure index rules."""

    @pytest.mark.parametrize(
        "relpath,excluded",
        [
            ("index.json", True),
            ("packet_hash.txt", True),
            ("manifest.json", False),
            ("index.json.tmp", True),
            ("captures/partial.tmp", True),
            ("captures/index.json", False),
            ("journal.ndjson", False),
        ],
    )
    def test_is_excluded(self, relpath, excluded):
        assert is_excluded(relpath) is excluded

    def test_packet_hash_is_hash_of_canonical_index(self):
        index = {"b.txt": "b" * 64, "a.txt": "a" * 64}
        assert compute_packet_hash(index) == sha256_hex(canonicalize_json(index))

    def test_compare_index(self):
        stored = {"a": "1" * 64, "b": "2" * 64}
        actual = {"a": "1" * 64, "c": "3" * 64}
        divergences = compare_index(stored, actual)
        assert [(d.code, d.path) for d in divergences] == [
            (IntakeCode.MISSING_ARTIFACT, "b"),
            (IntakeCode.UNINDEXED_ARTIFACT, "c"),
        ]

    def test_validate_index_shape(self):
        assert validate_index_shape({"a": "0" * 64}) == []
        assert validate_index_shape([]) == ["index must be a JSON object"]
        assert len(validate_index_shape({"a": "short"})) == 1


class TestSealPacket:
    """Tests for seal_packet."""

    def test_seal_writes_index_manifest_and_hash(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        result = seal_packet(packet)

        index = json.loads((packet / "index.json").read_text(encoding="utf-8"))
        assert list(index) == ["captures/step-1.png", "determination.json", "manifest.json"]
        assert index["captures/step-1.png"] == sha256_hex(b"\x89PNG\r\n")

        assert result.file_count == 3
        assert result.packet_hash == sha256_hex(canonicalize_json(index))
        assert (packet / "packet_hash.txt").read_text(encoding="utf-8") == result.packet_hash + "\n"

        manifest = json.loads((packet / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["schema"] == MANIFEST_SCHEMA
        assert manifest["artifact_dir_hint"] == "packet"
        assert manifest["evidence_file_count"] == 2
        assert index["manifest.json"] == sha256_hex((packet / "manifest.json").read_bytes())
        assert manifest["env"] is None

    def test_index_written_canonically(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        text = (packet / "index.json").read_text(encoding="utf-8")
        assert text == canonicalize_json(json.loads(text)) + "\n"

    def test_seal_is_write_once(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        first = seal_packet(packet)
        (packet / "late.txt").write_text("added after sealing", encoding="utf-8")

        with pytest.raises(PacketAlreadySealed) as excinfo:
            seal_packet(packet)
        assert excinfo.value.code == IntakeCode.ALREADY_SEALED
        assert (packet / "packet_hash.txt").read_text(encoding="utf-8") == first.packet_hash + "\n"
        assert "late.txt" not in json.loads((packet / "index.json").read_text(encoding="utf-8"))

    def test_seal_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            seal_packet(tmp_path / "missing")

    def test_existing_manifest_refused(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        (packet / "manifest.json").write_text('{"evidence": true}', encoding="utf-8")
        with pytest.raises(PacketIntegrityError) as excinfo:
            seal_packet(packet)
        assert excinfo.value.code == IntakeCode.INVALID_STRUCTURE
        assert (packet / "manifest.json").read_text(encoding="utf-8") == '{"evidence": true}'
        assert not (packet / "index.json").exists()
        assert not (packet / "packet_hash.txt").exists()

    def test_manifest_env_from_first_env_event(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        journal = JournalWriter(packet / "journal.ndjson")
        journal.append({"type": "ENV", "env": {"locale": "en-US"}})
        journal.append({"type": "ENV", "env": {"locale": "fr-FR"}})
        seal_packet(packet)
        manifest = json.loads((packet / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["env"]["env"] == {"locale": "en-US"}

    def test_explicit_env_wins(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet, env={"browser": "chromium"})
        manifest = json.loads((packet / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["env"] == {"browser": "chromium"}

    def test_build_index_skips_seal_files_and_temp_files(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        (packet / "index.json").write_text("{}", encoding="utf-8")
        (packet / "captures" / "index.json").write_text("{}", encoding="utf-8")
        (packet / "captures" / "half.tmp").write_text("x", encoding="utf-8")
        assert list(build_index(packet)) == [
            "captures/index.json",
            "captures/step-1.png",
            "determination.json",
        ]


class TestVerifyPacket:
    """Tests for verify_packet."""

    def test_untouched_packet_verifies(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        result = verify_packet(packet)
        assert result.ok is True
        assert result.errors == []
        assert result.warnings == []

    def test_corrupted_file(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        index = json.loads((packet / "index.json").read_text(encoding="utf-8"))
        (packet / "determination.json").write_text('{"category": "edited"}\n', encoding="utf-8")

        result = verify_packet(packet)
        assert result.ok is False
        assert [e.code for e in result.errors] == [IntakeCode.CORRUPTED_ARTIFACT.value]
        error = result.errors[0]
        assert error.path == "determination.json"
        assert error.expected == index["determination.json"]
        assert error.actual == sha256_hex('{"category": "edited"}\n')

    def test_missing_file(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        (packet / "captures" / "step-1.png").unlink()
        result = verify_packet(packet)
        assert result.ok is False
        assert result.errors[0].code == IntakeCode.MISSING_ARTIFACT.value
        assert result.errors[0].path == "captures/step-1.png"

    def test_every_divergence_reported(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        (packet / "captures" / "step-1.png").unlink()
        (packet / "determination.json").write_text("changed", encoding="utf-8")
        result = verify_packet(packet)
        assert sorted(e.code for e in result.errors) == sorted([
            IntakeCode.CORRUPTED_ARTIFACT.value,
            IntakeCode.MISSING_ARTIFACT.value,
        ])

    def test_unindexed_file_is_warning(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        (packet / "notes.txt").write_text("added later", encoding="utf-8")
        result = verify_packet(packet)
        assert result.ok is True
        assert [w.code for w in result.warnings] == [IntakeCode.UNINDEXED_ARTIFACT.value]
        assert result.warnings[0].path == "notes.txt"

    def test_forged_manifest_detected(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        (packet / "manifest.json").write_text('{"forged": true}', encoding="utf-8")
        result = verify_packet(packet)
        assert result.ok is False
        assert [(e.code, e.path) for e in result.errors] == [
            (IntakeCode.CORRUPTED_ARTIFACT.value, "manifest.json"),
        ]

    def test_tampered_packet_hash(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        (packet / "packet_hash.txt").write_text("0" * 64 + "\n", encoding="utf-8")
        result = verify_packet(packet)
        assert result.ok is False
        assert [e.code for e in result.errors] == [IntakeCode.TAMPERED_SEAL.value]

    def test_edited_index_detected(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        index = json.loads((packet / "index.json").read_text(encoding="utf-8"))
        index["determination.json"] = "f" * 64
        (packet / "index.json").write_text(json.dumps(index), encoding="utf-8")
        result = verify_packet(packet)
        codes = {e.code for e in result.errors}
        assert IntakeCode.TAMPERED_SEAL.value in codes
        assert IntakeCode.CORRUPTED_ARTIFACT.value in codes

    def test_unsealed_directory(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        result = verify_packet(packet)
        assert result.ok is False
        assert result.errors[0].code == IntakeCode.FILE_NOT_FOUND.value

    def test_missing_directory(self, tmp_path):
        result = verify_packet(tmp_path / "missing")
        assert result.errors[0].code == IntakeCode.FILE_NOT_FOUND.value

    def test_invalid_index(self, tmp_path):
        packet = _make_evidence(tmp_path / "packet")
        seal_packet(packet)
        (packet / "index.json").write_text("not json", encoding="utf-8")
        result = verify_packet(packet)
        assert result.errors[0].code == IntakeCode.INVALID_STRUCTURE.value
