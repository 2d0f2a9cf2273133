"""forensic-intake CLI: intake runs, packet sealing and verification."""

import argparse
import json
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import Optional


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else (logging.ERROR if quiet else logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _read_json(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _build_intake_config(args):
    from .config import intake_config_from_dict, load_intake_config

    if args.config is not None:
        config = load_intake_config(args.config)
        if args.out is not None:
            config = config.model_copy(update={"output_dir": str(args.out)})
        return config

    if not args.target_url:
        print("Error: Must provide --config or --target-url.", file=sys.stderr)
        sys.exit(1)
    if (args.groups is None) == (args.run_units is None):
        print("Error: Must provide exactly one of --groups or --run-units.", file=sys.stderr)
        sys.exit(1)

    data = {
        "target_url": args.target_url,
        "target_domain": args.target_domain,
        "output_dir": str(args.out) if args.out is not None else None,
        "complaint_materials": args.complaint.read_text(encoding="utf-8") if args.complaint else "",
    }
    if args.groups is not None:
        data["complaint_groups"] = _read_json(args.groups)
    else:
        data["run_units"] = _read_json(args.run_units)
    return intake_config_from_dict(data)


def main():
    """Main CLI entry point for forensic-intake commands."""
    try:
        intake_version = get_version("forensic-intake")
    except PackageNotFoundError:
        intake_version = "dev"

    parser = argparse.ArgumentParser(
        prog="forensic-intake",
        description="forensic-intake: bounded website evidence intake with tamper-evident packets"
    )
    parser.add_argument("--version", action="version", version=f"forensic-intake {intake_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # intake command
    intake_parser = subparsers.add_parser(
        "intake",
        help="Run an intake against a target URL",
        parents=[parent_parser]
    )
    intake_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to intake config JSON (replaces the individual input flags)"
    )
    intake_parser.add_argument("--target-url", default=None, help="Target URL")
    intake_parser.add_argument("--target-domain", default=None, help="Target domain label")
    intake_parser.add_argument(
        "--groups",
        type=Path,
        default=None,
        help="Path to grouped assertions JSON ([{anchor, assertions}])"
    )
    intake_parser.add_argument(
        "--run-units",
        type=Path,
        default=None,
        help="Path to pre-normalized run units JSON ([{anchor, condition}])"
    )
    intake_parser.add_argument(
        "--complaint",
        type=Path,
        default=None,
        help="Path to complaint materials text (used only for mobile anchor detection)"
    )
    intake_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Output directory for journal and result artifacts"
    )

    # seal command
    seal_parser = subparsers.add_parser(
        "seal",
        help="Seal a finalized evidence directory (write-once)",
        parents=[parent_parser]
    )
    seal_parser.add_argument("packet_dir", type=Path, help="Path to evidence directory")

    # verify command group
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verification commands"
    )
    verify_subparsers = verify_parser.add_subparsers(dest="verify_command", help="Available verify commands")

    verify_packet_parser = verify_subparsers.add_parser(
        "packet",
        help="Verify a sealed packet against its index and packet hash",
        parents=[parent_parser]
    )
    verify_packet_parser.add_argument("packet_dir", type=Path, help="Path to sealed packet directory")
    verify_packet_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for report"
    )

    verify_journal_parser = verify_subparsers.add_parser(
        "journal",
        help="Replay a journal from genesis and verify every hash",
        parents=[parent_parser]
    )
    verify_journal_parser.add_argument("journal_path", type=Path, help="Path to journal.ndjson")
    verify_journal_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for report"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    _configure_logging(getattr(args, "verbose", False), getattr(args, "quiet", False))

    def _write_validation_result(result, output_dir: Optional[Path], filename: str) -> None:
        from ._internal.canonical_json import canonical_dumps

        result_dict = result.model_dump()
        if output_dir is not None:
            output_dir.mkdir(parents=True, exist_ok=True)
            report_out = output_dir / filename
            report_out.write_text(canonical_dumps(result_dict) + "\n", encoding="utf-8")
            if not args.quiet:
                print("[OK] Verification complete")
                print(f"  Report: {report_out}")
        else:
            if not args.quiet:
                status = "OK" if result.ok else "FAILED"
                print(f"[{status}] Verification complete")
        if not args.quiet:
            print(f"  Status: {'OK' if result.ok else 'FAILED'}")
            print(f"  Errors: {len(result.errors)}")
            print(f"  Warnings: {len(result.warnings)}")
            for issue in result.errors + result.warnings:
                print(f"  [{issue.code}] {issue.message}")
        if not result.ok:
            sys.exit(1)

    if args.command == "intake":
        from .kernel.errors import IntakeError

        try:
            config = _build_intake_config(args)
            try:
                from .adapters.playwright_driver import PlaywrightExecutor
            except ImportError as e:
                print(f"Error: Playwright is required for intake runs (pip install forensic-intake[capture]): {e}", file=sys.stderr)
                sys.exit(1)

            from .api import run_intake

            outcome = run_intake(config, PlaywrightExecutor())
            if not args.quiet:
                print("[OK] Intake complete")
                print(f"  Output: {outcome.output_dir}")
                print(f"  Determination: {outcome.external.determination.value}")
                if outcome.external.determination_note:
                    print(f"  Note: {outcome.external.determination_note}")
                print(f"  Runs executed: {outcome.internal.total_runs_executed}")
        except IntakeError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except json.JSONDecodeError as e:
            print(f"Error: invalid JSON input: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "seal":
        from .kernel.errors import PacketAlreadySealed, PacketIntegrityError

        try:
            from .api import seal_packet

            result = seal_packet(Path(args.packet_dir).resolve())
            if not args.quiet:
                print("[OK] Packet sealed")
                print(f"  Files: {result.file_count}")
                print(f"  Packet hash: {result.packet_hash}")
        except (PacketAlreadySealed, PacketIntegrityError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "verify" and args.verify_command == "packet":
        from .api import verify_packet

        packet_dir = Path(args.packet_dir).resolve()
        output_dir = Path(args.output_dir).resolve() if args.output_dir else None
        result = verify_packet(packet_dir)
        _write_validation_result(result, output_dir, "verify_packet.json")
    elif args.command == "verify" and args.verify_command == "journal":
        from .api import verify_journal

        journal_path = Path(args.journal_path).resolve()
        output_dir = Path(args.output_dir).resolve() if args.output_dir else None
        result = verify_journal(journal_path)
        _write_validation_result(result, output_dir, "verify_journal.json")
    elif args.command == "verify":
        verify_parser.print_help()
        sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
