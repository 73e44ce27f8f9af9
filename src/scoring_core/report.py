"""Output formatters for the CLI: aligned tables and JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from scoring_core.assessment.models import AssessmentConfig, CategoryScoring
from scoring_core.interaction.pipeline import ScoringSummary


def _row(cols: list[str], widths: list[int]) -> str:
    return "  ".join(c.ljust(w) for c, w in zip(cols, widths))


# ---------------------------------------------------------------------------
# Lead score
# ---------------------------------------------------------------------------

def format_score_table(summary: ScoringSummary) -> str:
    score = summary.score
    lines: list[str] = []

    lines.append("Lead Score Report")
    lines.append("=" * 64)
    lines.append(f"Total:        {score.total}  ({score.tier.value})")
    lines.append(
        f"Buckets:      engagement={score.engagement}"
        f"  readiness={score.readiness}  behavioral={score.behavioral}"
    )
    lines.append(f"Conversion:   {score.conversion_probability}%")
    if summary.next_tier == "max":
        lines.append("Next tier:    already at the top tier")
    else:
        lines.append(f"Next tier:    {summary.next_tier} in {summary.points_to_next_tier} points")
    lines.append("")

    if summary.breakdown:
        lines.append("Breakdown")
        widths = [24, 8, 8, 30]
        lines.append(_row(["Event type", "Count", "Points", "Description"], widths))
        lines.append("-" * 64)
        ordered = sorted(summary.breakdown.items(), key=lambda kv: -kv[1].points)
        for event_type, item in ordered:
            lines.append(
                _row(
                    [event_type[:24], str(item.count), f"{item.points:.1f}", item.description[:30]],
                    widths,
                )
            )
        lines.append("")

    lines.append("Recommendations")
    for rec in summary.recommendations:
        lines.append(f"  - {rec}")

    return "\n".join(lines)


def format_score_json(summary: ScoringSummary) -> str:
    return json.dumps(summary.to_dict(), indent=2)


# ---------------------------------------------------------------------------
# Tool configuration check
# ---------------------------------------------------------------------------

@dataclass
class ToolCheck:
    tool_id: str
    title: str
    question_count: int
    required_count: int
    scoring_type: str
    tier_count: int
    tier_coverage: str
    warnings: list[str] = field(default_factory=list)


def _tier_coverage(config: AssessmentConfig) -> str:
    tiers = config.scoring.result_tiers
    if not tiers:
        return "none"
    if tiers[0].min <= 0 and tiers[-1].max >= 100:
        return "full"
    return "partial"


def check_tool(config: AssessmentConfig) -> ToolCheck:
    """Summarize one loaded tool and flag configurations that will score poorly."""
    warnings: list[str] = []
    coverage = _tier_coverage(config)
    if coverage == "none" and config.scoring.type != "custom":
        warnings.append("no result tiers; results will carry no tier")
    elif coverage == "partial":
        warnings.append("result tiers do not span 0-100")

    if isinstance(config.scoring, CategoryScoring):
        categorized = {qid for c in config.scoring.categories for qid in c.questions}
        orphans = [q.id for q in config.questions if q.id not in categorized]
        if orphans:
            warnings.append(f"questions outside every category: {', '.join(orphans)}")
    if not config.required_ids:
        warnings.append("no required questions; the tool is complete before any answer")

    return ToolCheck(
        tool_id=config.id,
        title=config.title,
        question_count=len(config.questions),
        required_count=len(config.required_ids),
        scoring_type=config.scoring.type,
        tier_count=len(config.scoring.result_tiers),
        tier_coverage=coverage,
        warnings=warnings,
    )


def format_tools_table(checks: list[ToolCheck]) -> str:
    lines: list[str] = []
    lines.append("Assessment Tool Check")
    lines.append("=" * 72)
    hdr = ["Tool", "Questions", "Required", "Scoring", "Tiers"]
    widths = [30, 10, 9, 15, 8]
    lines.append(_row(hdr, widths))
    lines.append("-" * 72)
    for c in checks:
        lines.append(
            _row(
                [
                    c.tool_id[:30],
                    str(c.question_count),
                    str(c.required_count),
                    c.scoring_type,
                    f"{c.tier_count} ({c.tier_coverage})",
                ],
                widths,
            )
        )
    lines.append("-" * 72)

    flagged = [c for c in checks if c.warnings]
    if flagged:
        lines.append("")
        lines.append("Warnings")
        for c in flagged:
            for warning in c.warnings:
                lines.append(f"  {c.tool_id}: {warning}")

    lines.append("")
    n = len(checks)
    lines.append(f"Loaded: {n} tool{'s' if n != 1 else ''} | with warnings: {len(flagged)}")
    return "\n".join(lines)


def _check_to_dict(c: ToolCheck) -> dict[str, Any]:
    return {
        "tool_id": c.tool_id,
        "title": c.title,
        "question_count": c.question_count,
        "required_count": c.required_count,
        "scoring_type": c.scoring_type,
        "tier_count": c.tier_count,
        "tier_coverage": c.tier_coverage,
        "warnings": list(c.warnings),
    }


def format_tools_json(checks: list[ToolCheck]) -> str:
    return json.dumps({"tools": [_check_to_dict(c) for c in checks]}, indent=2)
