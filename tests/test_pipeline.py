"""
Unit Tests for the Weighted Scoring Pipeline and Result Types

Covers the pieces every scorer shares: CheckResult arithmetic, Issue
serialization, the weighted-sum pipeline and the tolerant record readers.
"""

from datetime import date

import pytest

from discharge_quality.quality import (
    CheckResult,
    Issue,
    ScoreResult,
    ScoringContext,
    ScoringPipeline,
    Severity,
    TermRule,
    WeightedCheck,
)
from discharge_quality.quality.records import (
    as_mapping,
    date_formats,
    get_items,
    get_value,
    item_name,
    parse_date,
    serialize_narrative,
)
from discharge_quality.schemas import ExtractedRecord


def fixed_check(accurate: float, total: float, issues: list[Issue] | None = None):
    def run(ctx: ScoringContext) -> CheckResult:
        return CheckResult(total_checks=total, accurate_checks=accurate, issues=list(issues or []))
    return run


# ---------------------------------------------------------------------------
# RESULT TYPES
# ---------------------------------------------------------------------------


class TestCheckResult:

    def test_passed_and_failed(self):
        result = CheckResult()
        result.passed()
        result.passed(credit=0.5)
        result.failed(Issue("X", Severity.MINOR, -0.01))
        result.failed()

        assert result.total_checks == 4
        assert result.accurate_checks == 1.5
        assert len(result.issues) == 1

    def test_reward_adds_to_both_sides(self):
        result = CheckResult()
        result.reward(3)

        assert result.total_checks == pytest.approx(0.3)
        assert result.accurate_checks == pytest.approx(0.3)

    def test_ensure_checked_on_empty(self):
        result = CheckResult().ensure_checked()
        assert (result.total_checks, result.accurate_checks) == (1.0, 1.0)

    def test_ensure_checked_keeps_counts(self):
        result = CheckResult(total_checks=2, accurate_checks=0).ensure_checked()
        assert result.ratio == 0.0

    def test_to_dict(self):
        result = CheckResult(total_checks=2, accurate_checks=1)
        assert result.to_dict() == {"totalChecks": 2, "accurateChecks": 1, "issues": []}


class TestIssue:

    def test_to_dict_flattens_context(self):
        issue = Issue(
            type="DOSE_MISMATCH",
            severity=Severity.CRITICAL,
            impact=-0.05,
            suggestion="Verify dose for keppra",
            context={"medication": "keppra", "dose": "750 mg"},
        )

        assert issue.to_dict() == {
            "type": "DOSE_MISMATCH",
            "medication": "keppra",
            "dose": "750 mg",
            "severity": "critical",
            "impact": -0.05,
            "suggestion": "Verify dose for keppra",
        }

    def test_to_dict_omits_missing_suggestion(self):
        issue = Issue("AGE_MISMATCH", Severity.MINOR, -0.01)
        assert "suggestion" not in issue.to_dict()

    def test_issues_are_frozen(self):
        issue = Issue("AGE_MISMATCH", Severity.MINOR, -0.01)
        with pytest.raises(AttributeError):
            issue.impact = 0.0


class TestSeverity:

    def test_rank_orders_most_severe_first(self):
        ordered = sorted(Severity, key=lambda s: s.rank)
        assert [s.value for s in ordered] == ["critical", "major", "minor", "warning"]

    def test_string_values(self):
        assert Severity("major") is Severity.MAJOR
        assert Severity.CRITICAL == "critical"


class TestScoreResult:

    def test_weighted_and_penalty_flag(self):
        result = ScoreResult("accuracy", score=0.8, raw_score=0.9, weight=0.25)

        assert result.weighted == pytest.approx(0.2)
        assert result.penalty_applied is True

    def test_to_dict_uses_camel_case_keys(self):
        result = ScoreResult(
            "accuracy", 0.8, 0.9, 0.25, details={"penalty_applied": True},
        )
        payload = result.to_dict()

        assert payload["rawScore"] == 0.9
        assert payload["penaltyApplied"] is True
        assert payload["details"] == {"penaltyApplied": True}

    def test_to_dict_serializes_check_details(self):
        result = ScoreResult(
            "accuracy", 1.0, 1.0, 0.25,
            details={"dates": CheckResult(1, 1), "hallucinations": None, "penalty_applied": False},
        )
        details = result.to_dict()["details"]

        assert details["dates"] == {"totalChecks": 1, "accurateChecks": 1, "issues": []}
        assert details["hallucinations"] is None
        assert details["penaltyApplied"] is False
        assert "penalty_applied" not in details


# ---------------------------------------------------------------------------
# PIPELINE
# ---------------------------------------------------------------------------


class TestScoringPipeline:

    def context(self) -> ScoringContext:
        return ScoringContext.build({}, "", None)

    def test_weighted_ratio(self):
        pipeline = ScoringPipeline("demo", 0.5, [
            WeightedCheck("a", 0.75, fixed_check(1, 1)),
            WeightedCheck("b", 0.25, fixed_check(0, 3)),
        ])
        result = pipeline.score(self.context())

        # (0.75 * 1) / (0.75 * 1 + 0.25 * 3)
        assert result.raw_score == pytest.approx(0.5)
        assert result.score == result.raw_score
        assert result.weight == 0.5
        assert result.dimension == "demo"

    def test_empty_check_gets_full_credit(self):
        pipeline = ScoringPipeline("demo", 1.0, [
            WeightedCheck("empty", 0.5, fixed_check(0, 0)),
            WeightedCheck("failing", 0.5, fixed_check(0, 1)),
        ])
        result = pipeline.score(self.context())

        assert result.raw_score == pytest.approx(0.5)
        assert result.details["empty"].total_checks == 1.0

    def test_skipped_check(self):
        pipeline = ScoringPipeline("demo", 1.0, [
            WeightedCheck("kept", 0.5, fixed_check(1, 1)),
            WeightedCheck("skipped", 0.5, fixed_check(0, 5)),
        ])
        result = pipeline.score(self.context(), skip=("skipped",))

        assert result.raw_score == 1.0
        assert result.details["skipped"] is None

    def test_raw_score_clamped(self):
        pipeline = ScoringPipeline("demo", 1.0, [WeightedCheck("over", 1.0, fixed_check(3, 1))])
        assert pipeline.score(self.context()).raw_score == 1.0

    def test_penalty_floored_at_zero(self):
        pipeline = ScoringPipeline(
            "demo", 1.0,
            [WeightedCheck("a", 1.0, fixed_check(1, 1))],
            penalty=lambda issues: 5.0,
        )
        result = pipeline.score(self.context())

        assert result.score == 0.0
        assert result.details["penalty_applied"] is True

    def test_issues_collected_in_check_order(self):
        first = Issue("FIRST", Severity.MINOR, -0.01)
        second = Issue("SECOND", Severity.MAJOR, -0.02)
        pipeline = ScoringPipeline("demo", 1.0, [
            WeightedCheck("a", 0.5, fixed_check(0, 1, [first])),
            WeightedCheck("b", 0.5, fixed_check(0, 1, [second])),
        ])

        assert pipeline.score(self.context()).issues == [first, second]

    def test_no_checks(self):
        result = ScoringPipeline("demo", 1.0, []).score(self.context())
        assert result.score == 1.0


class TestScoringContext:

    def test_build_normalizes_inputs(self):
        ctx = ScoringContext.build(None, None, {"Course": "Seen by Dr. Who"})

        assert ctx.extracted == {}
        assert ctx.source_notes == ""
        assert ctx.narrative_text == '{"course": "seen by dr. who"}'

    def test_source_lower(self):
        ctx = ScoringContext.build({}, "MRN 123 Keppra")
        assert ctx.source_lower == "mrn 123 keppra"

    def test_pydantic_record_becomes_mapping(self):
        record = ExtractedRecord.model_validate({"demographics": {"mrn": "42"}})
        ctx = ScoringContext.build(record)

        assert ctx.extracted["demographics"] == {"mrn": "42"}


# ---------------------------------------------------------------------------
# RECORD READERS
# ---------------------------------------------------------------------------


class TestRecordReaders:

    def test_as_mapping(self):
        assert as_mapping({"a": 1}) == {"a": 1}
        assert as_mapping(["a"]) == {}
        assert as_mapping(None) == {}

    def test_get_value_camel_fallback(self):
        assert get_value({"admissionDate": "2024-01-10"}, "admission_date") == "2024-01-10"
        assert get_value({"admission_date": "x", "admissionDate": "y"}, "admission_date") == "x"
        assert get_value("not a mapping", "admission_date") is None

    def test_get_items_both_shapes(self):
        nested = {"medications": {"medications": ["a", "b"]}}
        flat = {"medications": ["a", "b"]}

        assert get_items(nested, "medications") == ["a", "b"]
        assert get_items(flat, "medications") == ["a", "b"]
        assert get_items({"medications": "a"}, "medications") == []

    def test_item_name(self):
        assert item_name("  Keppra ", "name") == "Keppra"
        assert item_name("   ", "name") is None
        assert item_name({"procedure": "EVD"}, "procedure", "name") == "EVD"
        assert item_name({"name": ""}, "name") is None
        assert item_name(12, "name") is None

    def test_serialize_narrative(self):
        assert serialize_narrative(None) == ""
        assert serialize_narrative("text") == "text"
        assert serialize_narrative({"a": "é"}) == '{"a": "é"}'


class TestDates:

    def test_date_formats(self):
        assert date_formats("2024-01-05") == [
            "01/05/2024",
            "1/5/2024",
            "2024-01-05",
            "January 5, 2024",
        ]

    def test_date_formats_fallback(self):
        assert date_formats("next week") == ["next week"]

    @pytest.mark.parametrize(
        "value",
        [
            "2024-01-05",
            "01/05/2024",
            "January 5, 2024",
            "Jan 5, 2024",
            "5 January 2024",
            "2024-01-05T09:30:00",
            date(2024, 1, 5),
        ],
    )
    def test_parse_date(self, value):
        assert parse_date(value) == date(2024, 1, 5)

    @pytest.mark.parametrize("value", ["", "   ", "soon", None, 20240105])
    def test_parse_date_unreadable(self, value):
        assert parse_date(value) is None


class TestTermRule:

    def test_scan(self):
        rule = TermRule(
            issue_type="VAGUE_QUANTIFIER",
            terms=("several", "few"),
            severity=Severity.MINOR,
            impact=-0.01,
            suggestion='Replace "{term}" with a number',
        )
        issues = rule.scan("several drains, a few days")

        assert [i.context["term"] for i in issues] == ["several", "few"]
        assert issues[0].suggestion == 'Replace "several" with a number'
        assert rule.scan("two drains") == []
