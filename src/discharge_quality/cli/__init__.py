"""
CLI module - the discharge-quality command.

Provides entry points for:
- Deduplicating fragments
- Accuracy, specificity and combined quality scoring
- The golden-case regression gate
"""

from discharge_quality.cli.commands import (
    main,
    run_dedup_cli,
    run_accuracy_cli,
    run_specificity_cli,
    run_report_cli,
    run_golden_cli,
)

__all__ = [
    "main",
    "run_dedup_cli",
    "run_accuracy_cli",
    "run_specificity_cli",
    "run_report_cli",
    "run_golden_cli",
]
