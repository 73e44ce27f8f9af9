"""Personalized insights and chart data derived from assessment scores."""

from __future__ import annotations

from scoring_core.assessment.models import (
    AssessmentConfig,
    AssessmentScores,
    CategoryScoring,
    Insight,
    InsightPriority,
    InsightType,
    VisualizationData,
    VisualizationDataset,
)

STRENGTH_THRESHOLD = 80
OPPORTUNITY_THRESHOLD = 40

_RADAR_FILL = "rgba(59, 130, 246, 0.2)"
_RADAR_BORDER = "rgba(59, 130, 246, 1)"
_GAUGE_FILL = "rgba(34, 197, 94, 0.8)"


def _tier_insights(scores: AssessmentScores) -> list[Insight]:
    tier = scores.tier
    if tier is None:
        return []
    insights = [
        Insight(
            category="overall",
            type=InsightType.RECOMMENDATION,
            title=f"You're a {tier.label}",
            message=tier.description,
            action_items=list(tier.recommendations),
            priority=InsightPriority.HIGH,
        )
    ]
    for text in tier.insights:
        insights.append(Insight(
            category="overall",
            type=InsightType.STRENGTH,
            title="Key Insight",
            message=text,
            priority=InsightPriority.MEDIUM,
        ))
    return insights


def _category_insights(scores: AssessmentScores, config: AssessmentConfig) -> list[Insight]:
    if not scores.category_scores or not isinstance(config.scoring, CategoryScoring):
        return []
    insights: list[Insight] = []
    for category_id, category_score in scores.category_scores.items():
        category = config.scoring.category(category_id)
        if category is None:
            continue
        pct = category_score.percentage
        if pct >= STRENGTH_THRESHOLD:
            insights.append(Insight(
                category=category_id,
                type=InsightType.STRENGTH,
                title=f"Strong {category.name}",
                message=(
                    f"You scored {pct:g}% in {category.name}, "
                    "indicating strong capabilities in this area."
                ),
                priority=InsightPriority.MEDIUM,
            ))
        elif pct <= OPPORTUNITY_THRESHOLD:
            insights.append(Insight(
                category=category_id,
                type=InsightType.OPPORTUNITY,
                title=f"Growth Opportunity in {category.name}",
                message=(
                    f"Your {category.name} score of {pct:g}% "
                    "suggests significant room for improvement."
                ),
                action_items=[f"Focus on developing your {category.name.lower()} skills"],
                priority=InsightPriority.HIGH,
            ))
    return insights


def generate_insights(scores: AssessmentScores, config: AssessmentConfig) -> list[Insight]:
    """Tier insights first, then one insight per notably strong or weak category.

    Categories scoring between the two thresholds produce nothing.
    """
    return _tier_insights(scores) + _category_insights(scores, config)


def generate_visualization(scores: AssessmentScores, config: AssessmentConfig) -> VisualizationData:
    if scores.category_scores and isinstance(config.scoring, CategoryScoring):
        categories = config.scoring.categories
        data = []
        for category in categories:
            category_score = scores.category_scores.get(category.id)
            data.append(category_score.percentage if category_score is not None else 0.0)
        return VisualizationData(
            chart_type="radar",
            labels=[c.name for c in categories],
            datasets=[VisualizationDataset(
                label="Your Scores",
                data=data,
                background_color=[_RADAR_FILL],
                border_color=[_RADAR_BORDER],
            )],
        )
    return VisualizationData(
        chart_type="gauge",
        labels=["Score"],
        datasets=[VisualizationDataset(
            label="Overall Score",
            data=[scores.percentage],
            background_color=[_GAUGE_FILL],
        )],
    )
