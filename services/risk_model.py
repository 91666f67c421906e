"""Weighting, trend and severity rules that turn sub-scores into one risk score."""
from typing import Dict, Sequence

from services.factors import Source, SubScore
from services.subscores import round_half_up

# Mood is the most direct signal
BASE_WEIGHTS = {
    Source.VELOCITY: 0.15,
    Source.MOOD: 0.30,
    Source.WORK_HOURS: 0.15,
    Source.BREAKS: 0.10,
    Source.COMMIT_PATTERNS: 0.15,
    Source.CODING_TIME: 0.15,
}

TREND_MIN_SCORES = 3
TREND_WINDOW = 7


def effective_weights(scores: Dict[Source, SubScore]) -> Dict[Source, float]:
    """Spread the weight of missing sources evenly over the available ones.

    Missing sources get weight 0. With no available source every weight is 0.
    """
    available = [source for source in Source if scores.get(source, SubScore()).available]
    if not available:
        return {source: 0.0 for source in Source}

    missing_weight = sum(BASE_WEIGHTS[s] for s in Source if s not in available)
    share = missing_weight / len(available)
    return {
        source: (BASE_WEIGHTS[source] + share) if source in available else 0.0
        for source in Source
    }


def trend_modifier(recent_scores: Sequence[int]) -> int:
    """+5 when risk is accelerating, -3 when it is easing.

    ``recent_scores`` is most-recent first.
    """
    if len(recent_scores) < TREND_MIN_SCORES:
        return 0
    trend = (recent_scores[0] - recent_scores[-1]) / len(recent_scores)
    if trend > 5:
        return 5
    if trend < -5:
        return -3
    return 0


def severity_modifier(scores: Dict[Source, SubScore]) -> int:
    high_risk = sum(1 for score in scores.values() if score.is_high_risk)
    if high_risk >= 3:
        return 10
    if high_risk == 2:
        return 5
    return 0


def base_score(scores: Dict[Source, SubScore], weights: Dict[Source, float]) -> float:
    return sum(
        score.value * weights.get(source, 0.0)
        for source, score in scores.items() if score.available
    )


def composite_score(scores: Dict[Source, SubScore], weights: Dict[Source, float],
                    trend: int = 0, severity: int = 0) -> int:
    final = base_score(scores, weights) + trend + severity
    return max(0, min(100, round_half_up(final)))
