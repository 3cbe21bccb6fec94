"""
CLI commands - score and deduplicate discharge documents from the shell.

Each command follows a consistent pattern:
1. Parse arguments
2. Load environment
3. Load the document (golden case or JSON file)
4. Run the operation and print results
5. Return exit code

INPUT FILES:
------------
A JSON object with any of:
    sourceNotes  raw clinical notes (string)
    extracted    extraction record (object)
    narrative    generated narrative (object or string)
    fragments    text fragments to deduplicate (list of strings)

EXIT CODES:
-----------
    0    success / gate passed
    1    score below --min-score, or golden expectations not met
    2    bad input (unknown case, unreadable file, bad configuration)
    130  interrupted
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from discharge_quality.core.config import ConfigurationError
from discharge_quality.observability import init_phoenix, shutdown_phoenix

logger = logging.getLogger(__name__)


def _load_env() -> None:
    """Load environment variables from .env file."""
    load_dotenv()


@dataclass
class Document:
    """What a command operates on."""

    name: str
    source_notes: str = ""
    extracted: dict[str, Any] = field(default_factory=dict)
    narrative: Any = None
    fragments: list[Any] = field(default_factory=list)


class InputError(Exception):
    """The requested case or file could not be loaded."""


def _add_input_args(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--case", help="Golden case ID (e.g. sah-001)")
    source.add_argument("--input", type=Path, help="JSON document file")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")


def load_document(case_id: str | None = None, path: Path | None = None) -> Document:
    """Load a golden case or a JSON document file."""
    if case_id is not None:
        from discharge_quality.golden_sets import get_case_by_id

        case = get_case_by_id(case_id)
        if case is None:
            raise InputError(f"Unknown golden case: {case_id}")
        return Document(
            name=case.id,
            source_notes=case.source_notes,
            extracted=case.extracted,
            narrative=case.narrative,
            fragments=case.fragments,
        )

    if path is None:
        raise InputError("Either a case ID or an input file is required")

    try:
        data = json.loads(path.read_text())
    except OSError as e:
        raise InputError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise InputError(f"{path} must contain a JSON object")

    logger.debug(f"Loaded document {path} with keys {sorted(data)}")
    fragments = data.get("fragments") or []
    return Document(
        name=path.name,
        source_notes=data.get("sourceNotes") or data.get("source_notes") or "",
        extracted=data.get("extracted") or {},
        narrative=data.get("narrative"),
        fragments=fragments if isinstance(fragments, list) else [],
    )


def _print_score(result: Any, quiet: bool = False) -> None:
    print(f"Score: {result.score:.3f} (raw {result.raw_score:.3f})")
    if result.penalty_applied:
        print(f"Penalty applied: {result.raw_score - result.score:.3f}")
    print(f"Issues: {len(result.issues)} ({result.critical_count} critical)")
    if quiet:
        return
    for issue in result.issues:
        subject = ", ".join(f"{k}={v}" for k, v in issue.context.items())
        print(f"  [{issue.severity.value.upper()}] {issue.type} {subject}")


def _gate(label: str, score: float, min_score: float) -> int:
    if score >= min_score:
        print(f"\n>>> {label} GATE: PASSED <<<")
        return 0
    print(f"\n>>> {label} GATE: FAILED ({score:.3f} < {min_score:.3f}) <<<")
    return 1


def _run_guarded(handler) -> int:
    try:
        return handler()
    except InputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2


# ---------------------------------------------------------------------------
# COMMANDS
# ---------------------------------------------------------------------------


def run_dedup_cli() -> int:
    """CLI entry point for fragment deduplication."""
    from discharge_quality.dedup import DeduplicationService

    _load_env()

    parser = argparse.ArgumentParser(description="Deduplicate text fragments")
    _add_input_args(parser)
    parser.add_argument("--threshold", type=float, default=None, help="Similarity threshold")
    parser.add_argument("--merge", action="store_true", help="Merge segments (longest variant)")
    args = parser.parse_args()

    def handler() -> int:
        document = load_document(args.case, args.input)
        service = DeduplicationService()

        if args.merge:
            merged = service.merge_segments(document.fragments, args.threshold)
            if args.json:
                print(json.dumps([m.to_dict() for m in merged], indent=2))
                return 0
            for segment in merged:
                print(f"  ({segment.merged_count}x, {segment.confidence:.1f}) {segment.text}")
            print(f"\n{len(document.fragments)} fragments -> {len(merged)} segments")
            return 0

        unique = service.deduplicate(document.fragments, args.threshold)
        if args.json:
            print(json.dumps(unique, indent=2))
            return 0
        for text in unique:
            print(f"  {text}")
        print(f"\n{len(document.fragments)} fragments -> {len(unique)} unique")
        return 0

    return _run_guarded(handler)


def run_accuracy_cli() -> int:
    """CLI entry point for accuracy scoring."""
    from discharge_quality.quality import calculate_accuracy_score

    _load_env()

    parser = argparse.ArgumentParser(description="Score extraction accuracy against source notes")
    _add_input_args(parser)
    parser.add_argument("--min-score", type=float, default=0.0, help="Gate threshold")
    parser.add_argument("--quiet", action="store_true", help="Minimal output")
    args = parser.parse_args()

    def handler() -> int:
        document = load_document(args.case, args.input)
        result = calculate_accuracy_score(
            document.extracted, document.source_notes, document.narrative
        )
        if args.json:
            print(json.dumps(result.to_dict(), indent=2, default=str))
            return 0 if result.score >= args.min_score else 1

        print("=" * 60)
        print(f"ACCURACY: {document.name}")
        print("=" * 60)
        _print_score(result, quiet=args.quiet)
        return _gate("ACCURACY", result.score, args.min_score)

    return _run_guarded(handler)


def run_specificity_cli() -> int:
    """CLI entry point for specificity scoring."""
    from discharge_quality.quality import calculate_specificity_score

    _load_env()

    parser = argparse.ArgumentParser(description="Score narrative specificity")
    _add_input_args(parser)
    parser.add_argument("--min-score", type=float, default=0.0, help="Gate threshold")
    parser.add_argument("--quiet", action="store_true", help="Minimal output")
    args = parser.parse_args()

    def handler() -> int:
        document = load_document(args.case, args.input)
        result = calculate_specificity_score(document.narrative, document.extracted)
        if args.json:
            print(json.dumps(result.to_dict(), indent=2, default=str))
            return 0 if result.score >= args.min_score else 1

        print("=" * 60)
        print(f"SPECIFICITY: {document.name}")
        print("=" * 60)
        _print_score(result, quiet=args.quiet)
        return _gate("SPECIFICITY", result.score, args.min_score)

    return _run_guarded(handler)


def run_report_cli() -> int:
    """CLI entry point for the combined quality report."""
    from discharge_quality.quality import (
        build_quality_report,
        calculate_accuracy_score,
        calculate_specificity_score,
    )

    _load_env()

    parser = argparse.ArgumentParser(description="Build a combined quality report")
    _add_input_args(parser)
    parser.add_argument("--min-score", type=float, default=0.7, help="Gate threshold")
    args = parser.parse_args()

    def handler() -> int:
        document = load_document(args.case, args.input)
        report = build_quality_report([
            calculate_accuracy_score(document.extracted, document.source_notes, document.narrative),
            calculate_specificity_score(document.narrative, document.extracted),
        ])
        if args.json:
            print(json.dumps(report.to_dict(), indent=2, default=str))
            return 0 if report.overall_score >= args.min_score else 1

        print("=" * 60)
        print(f"QUALITY REPORT: {document.name}")
        print("=" * 60)
        print(f"Overall: {report.percentage}% ({report.rating}), confidence {report.confidence:.2f}")
        for name, result in report.dimensions.items():
            print(f"  {name:<12} {result.score:.3f}  ({len(result.issues)} issues)")
        if report.recommendations:
            print("\nRecommendations:")
            for rec in report.recommendations:
                print(f"  [{rec.priority.upper()}] {rec.action}: {rec.details}")
        return _gate("QUALITY", report.overall_score, args.min_score)

    return _run_guarded(handler)


def run_golden_cli() -> int:
    """CLI entry point for the golden-case regression gate."""
    from discharge_quality.golden_sets import get_all_golden_cases

    _load_env()

    parser = argparse.ArgumentParser(description="Check every golden case against its expectations")
    parser.add_argument("--quiet", action="store_true", help="Minimal output")
    args = parser.parse_args()

    print("=" * 60)
    print("GOLDEN CASES")
    print("=" * 60)

    cases = get_all_golden_cases()
    failed = 0
    for case in cases:
        failures = check_golden_case(case)
        status = "PASS" if not failures else "FAIL"
        print(f"  [{status}] {case.id}")
        if failures:
            failed += 1
            if not args.quiet:
                for failure in failures:
                    print(f"        {failure}")

    print(f"\nPassed: {len(cases) - failed}/{len(cases)}")
    if failed:
        print("\n>>> GOLDEN GATE: FAILED <<<")
        return 1
    print("\n>>> GOLDEN GATE: PASSED <<<")
    return 0


def check_golden_case(case: Any) -> list[str]:
    """Return a description of every expectation the case does not meet."""
    from discharge_quality.dedup import DeduplicationService
    from discharge_quality.quality import calculate_accuracy_score, calculate_specificity_score

    accuracy = calculate_accuracy_score(case.extracted, case.source_notes, case.narrative)
    specificity = calculate_specificity_score(case.narrative, case.extracted)
    reported = {issue.type for issue in accuracy.issues + specificity.issues}

    failures: list[str] = []
    bounds = (
        ("accuracy", accuracy.score, case.min_accuracy, case.max_accuracy),
        ("specificity", specificity.score, case.min_specificity, case.max_specificity),
    )
    for name, score, low, high in bounds:
        if low is not None and score < low:
            failures.append(f"{name} {score:.3f} below {low:.3f}")
        if high is not None and score > high:
            failures.append(f"{name} {score:.3f} above {high:.3f}")

    for issue_type in case.expected_issue_types:
        if issue_type not in reported:
            failures.append(f"expected issue {issue_type} not reported")
    for issue_type in case.forbidden_issue_types:
        if issue_type in reported:
            failures.append(f"unexpected issue {issue_type}")

    if case.expected_unique_fragments is not None:
        unique = DeduplicationService().deduplicate(case.fragments)
        if len(unique) != case.expected_unique_fragments:
            failures.append(
                f"{len(unique)} unique fragments, expected {case.expected_unique_fragments}"
            )

    return failures


def main() -> int:
    """
    Main CLI entry point with subcommands.

    Usage:
        discharge-quality dedup --case sah-001
        discharge-quality accuracy --input doc.json
        discharge-quality specificity --case tumor-001
        discharge-quality report --case sah-001 --min-score 0.8
        discharge-quality golden
    """
    _load_env()
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Discharge summary quality tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  dedup        Collapse near-duplicate fragments
  accuracy     Score extraction and narrative against source notes
  specificity  Score how precise the narrative is
  report       Combined quality report with recommendations
  golden       Check all golden cases against their expectations

Examples:
  discharge-quality dedup --case sah-001 --merge
  discharge-quality report --input summary.json --json
        """,
    )

    parser.add_argument(
        "command",
        choices=["dedup", "accuracy", "specificity", "report", "golden"],
        help="Operation to run",
    )

    # Parse just the command first
    args, remaining = parser.parse_known_args()

    commands = {
        "dedup": run_dedup_cli,
        "accuracy": run_accuracy_cli,
        "specificity": run_specificity_cli,
        "report": run_report_cli,
        "golden": run_golden_cli,
    }

    # Re-inject remaining args for the subcommand
    sys.argv = [sys.argv[0]] + remaining

    # Initialize Phoenix observability (if enabled)
    init_phoenix()

    try:
        return commands[args.command]()
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    finally:
        shutdown_phoenix()


if __name__ == "__main__":
    sys.exit(main())
