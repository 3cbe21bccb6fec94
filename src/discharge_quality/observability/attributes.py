"""
Span attribute keys.

The dq.* namespace covers quality dimensions, issues, deduplication runs
and the similarity engine. Embedding calls carry the gen_ai.* keys set by
the OpenAI auto-instrumentor.
"""

# ---------------------------------------------------------------------------
# QUALITY NAMESPACE
# ---------------------------------------------------------------------------

# Dimension level
DQ_DIMENSION_NAME = "dq.dimension.name"  # "accuracy", "specificity"
DQ_DIMENSION_SCORE = "dq.dimension.score"
DQ_DIMENSION_RAW_SCORE = "dq.dimension.raw_score"
DQ_DIMENSION_WEIGHT = "dq.dimension.weight"
DQ_DIMENSION_PENALTY_APPLIED = "dq.dimension.penalty_applied"

# Issues
DQ_ISSUES_COUNT = "dq.issues.count"
DQ_ISSUES_CRITICAL = "dq.issues.critical"
DQ_ISSUES_TYPES = "dq.issues.types"  # only when content capture is on

# Deduplication
DQ_DEDUP_OPERATION = "dq.dedup.operation"  # "deduplicate", "merge_segments", ...
DQ_DEDUP_INPUT_COUNT = "dq.dedup.input_count"
DQ_DEDUP_OUTPUT_COUNT = "dq.dedup.output_count"
DQ_DEDUP_THRESHOLD = "dq.dedup.threshold"

# Similarity engine
DQ_SIMILARITY_PROVIDER = "dq.similarity.provider"
DQ_SIMILARITY_DEGRADED = "dq.similarity.degraded"  # bool

# Report
DQ_REPORT_OVERALL_SCORE = "dq.report.overall_score"
DQ_REPORT_RATING = "dq.report.rating"


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def dimension_attributes(
    name: str,
    score: float,
    raw_score: float,
    weight: float,
    issue_count: int,
    critical_count: int,
    penalty_applied: bool = False,
) -> dict:
    """Create attributes dict for a quality dimension span."""
    return {
        DQ_DIMENSION_NAME: name,
        DQ_DIMENSION_SCORE: score,
        DQ_DIMENSION_RAW_SCORE: raw_score,
        DQ_DIMENSION_WEIGHT: weight,
        DQ_DIMENSION_PENALTY_APPLIED: penalty_applied,
        DQ_ISSUES_COUNT: issue_count,
        DQ_ISSUES_CRITICAL: critical_count,
    }


def dedup_attributes(
    operation: str,
    input_count: int,
    output_count: int | None = None,
    threshold: float | None = None,
) -> dict:
    """Create attributes dict for a deduplication span."""
    attrs = {
        DQ_DEDUP_OPERATION: operation,
        DQ_DEDUP_INPUT_COUNT: input_count,
    }
    if output_count is not None:
        attrs[DQ_DEDUP_OUTPUT_COUNT] = output_count
    if threshold is not None:
        attrs[DQ_DEDUP_THRESHOLD] = threshold
    return attrs


def similarity_attributes(provider: str | None, degraded: bool) -> dict:
    """Create attributes dict describing the similarity engine in use."""
    return {
        DQ_SIMILARITY_PROVIDER: provider or "none",
        DQ_SIMILARITY_DEGRADED: degraded,
    }
