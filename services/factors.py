"""
Typed breakdown of a burnout score.

The factors payload is persisted as JSON on ``BurnoutScore.factors``. Older
rows were written without a schema version and with a loose bag of
``<name>Score`` keys; ``BurnoutFactors.from_dict`` reads both shapes so the
history endpoint never has to special-case them.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

SCHEMA_VERSION = 2

# Sub-scores at or above this value count as high risk
HIGH_RISK_THRESHOLD = 70


class Source(str, Enum):
    VELOCITY = 'velocity'
    MOOD = 'mood'
    WORK_HOURS = 'workHours'
    BREAKS = 'breaks'
    COMMIT_PATTERNS = 'commitPatterns'
    CODING_TIME = 'codingTime'


SOURCE_LABELS = {
    Source.VELOCITY: 'Issue Velocity',
    Source.MOOD: 'Mood Analysis',
    Source.WORK_HOURS: 'Work Patterns',
    Source.BREAKS: 'Break Frequency',
    Source.COMMIT_PATTERNS: 'Commit Activity',
    Source.CODING_TIME: 'Coding Time',
}

AVAILABILITY_KEYS = {
    Source.VELOCITY: 'hasVelocityData',
    Source.MOOD: 'hasMoodData',
    Source.WORK_HOURS: 'hasWorkHoursData',
    Source.BREAKS: 'hasBreakData',
    Source.COMMIT_PATTERNS: 'hasCommitData',
    Source.CODING_TIME: 'hasCodingTimeData',
}

# Key names used by rows written before the payload was versioned
_LEGACY_SCORE_KEYS = {
    Source.VELOCITY: 'velocityScore',
    Source.MOOD: 'moodScore',
    Source.WORK_HOURS: 'workHoursScore',
    Source.BREAKS: 'breakScore',
    Source.COMMIT_PATTERNS: 'commitPatternsScore',
    Source.CODING_TIME: 'wakatimeScore',
}


@dataclass(frozen=True)
class SubScore:
    """A 0-100 risk estimate from one source, or the absence of one."""
    value: float = 0.0
    available: bool = False

    @classmethod
    def of(cls, value: float) -> 'SubScore':
        return cls(value=float(max(0.0, min(100.0, value))), available=True)

    @classmethod
    def unavailable(cls) -> 'SubScore':
        return cls()

    @property
    def is_high_risk(self) -> bool:
        return self.available and self.value >= HIGH_RISK_THRESHOLD

    @property
    def band(self) -> str:
        if not self.available:
            return 'no data'
        if self.value >= HIGH_RISK_THRESHOLD:
            return 'high risk'
        if self.value >= 40:
            return 'moderate risk'
        return 'low risk'


def describe(source: Source, score: SubScore) -> str:
    label = SOURCE_LABELS[source]
    if not score.available:
        return f"{label}: no data"
    return f"{label}: {score.band} ({round(score.value)})"


@dataclass
class BurnoutFactors:
    scores: Dict[Source, SubScore]
    weights: Dict[Source, float]
    trend_modifier: int = 0
    severity_modifier: int = 0
    schema_version: int = SCHEMA_VERSION
    descriptions: Dict[Source, str] = field(default_factory=dict)

    def __post_init__(self):
        self.scores = dict(self.scores)
        self.weights = dict(self.weights)
        self.descriptions = dict(self.descriptions)
        for source in Source:
            self.scores.setdefault(source, SubScore.unavailable())
            self.weights.setdefault(source, 0.0)
            self.descriptions.setdefault(source, describe(source, self.scores[source]))

    @property
    def available_sources(self):
        return [source for source in Source if self.scores[source].available]

    @property
    def insufficient_data(self) -> bool:
        return not self.available_sources

    def score_of(self, source: Source) -> Optional[float]:
        score = self.scores[source]
        return round(score.value, 2) if score.available else None

    def to_dict(self) -> Dict:
        return {
            'schemaVersion': self.schema_version,
            'scores': {source.value: self.score_of(source) for source in Source},
            'dataAvailability': {
                AVAILABILITY_KEYS[source]: self.scores[source].available for source in Source
            },
            'appliedWeights': {
                source.value: round(self.weights[source], 6) for source in Source
            },
            'trendModifier': self.trend_modifier,
            'severityModifier': self.severity_modifier,
            'availableDataSources': len(self.available_sources),
            'insufficientData': self.insufficient_data,
            'factorDescriptions': {
                source.value: self.descriptions[source] for source in Source
            },
        }

    @classmethod
    def from_dict(cls, payload: Dict) -> 'BurnoutFactors':
        if payload.get('schemaVersion') is None:
            return cls._from_legacy(payload)

        raw_scores = payload.get('scores', {})
        availability = payload.get('dataAvailability', {})
        raw_weights = payload.get('appliedWeights', {})
        scores = {}
        for source in Source:
            value = raw_scores.get(source.value)
            if value is not None and availability.get(AVAILABILITY_KEYS[source], True):
                scores[source] = SubScore.of(value)
            else:
                scores[source] = SubScore.unavailable()
        return cls(
            scores=scores,
            weights={source: float(raw_weights.get(source.value, 0.0)) for source in Source},
            trend_modifier=int(payload.get('trendModifier', 0)),
            severity_modifier=int(payload.get('severityModifier', 0)),
            schema_version=int(payload['schemaVersion']),
        )

    @classmethod
    def _from_legacy(cls, payload: Dict) -> 'BurnoutFactors':
        # Unversioned rows only recorded a number per source; zero meant "no data"
        scores = {}
        for source, key in _LEGACY_SCORE_KEYS.items():
            value = payload.get(key) or 0
            scores[source] = SubScore.of(value) if value > 0 else SubScore.unavailable()
        raw_weights = payload.get('appliedWeights', {})
        return cls(
            scores=scores,
            weights={
                source: float(raw_weights.get(key, 0.0)) if scores[source].available else 0.0
                for source, key in _LEGACY_SCORE_KEYS.items()
            },
            trend_modifier=int(payload.get('trendModifier', 0)),
            severity_modifier=int(payload.get('severityModifier', 0)),
            schema_version=1,
        )
