"""
Composite burnout risk scoring.

``BurnoutEngine.calculate`` runs the six sub-score calculators, redistributes
the weight of sources without data, applies the trend and severity
modifiers, stores the day's score and evaluates the notification gate. A
failing source never fails the computation; it is logged and treated as
absent. Only a missing user identity is fatal.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from extensions import db
from models.activity import BreakRecord, MoodRecord, VelocityRecord, WorkSession
from models.burnout import BurnoutScore
from services import risk_model, subscores
from services.coding_time import get_coding_time_analytics
from services.commit_analyzer import get_commit_analytics
from services.errors import AuthenticationError, SourceUnavailableError
from services.factors import BurnoutFactors, Source, SubScore
from services.notification_gate import evaluate_notification
from services.score_store import get_recent_scores, upsert_burnout_score

logger = logging.getLogger(__name__)


@dataclass
class BurnoutResult:
    risk_score: int
    factors: BurnoutFactors
    should_notify: bool
    record: Optional[BurnoutScore] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'riskScore': self.risk_score,
            'factors': self.factors.to_dict(),
            'shouldNotify': self.should_notify,
        }


class BurnoutEngine:
    def __init__(self,
                 commit_analytics: Callable = get_commit_analytics,
                 coding_time_analytics: Callable = get_coding_time_analytics,
                 clock: Callable[[], datetime] = datetime.now):
        self.commit_analytics = commit_analytics
        self.coding_time_analytics = coding_time_analytics
        self.clock = clock

    def _velocity(self, user_id, now):
        records = VelocityRecord.query.filter(
            VelocityRecord.user_id == user_id,
            VelocityRecord.completed_at >= now - timedelta(days=14),
        ).all()
        return subscores.velocity_score(records, now)

    def _mood(self, user_id, now):
        records = MoodRecord.query.filter(
            MoodRecord.user_id == user_id,
            MoodRecord.timestamp >= now - timedelta(days=7),
        ).all()
        return subscores.mood_score(records, now)

    def _work_hours(self, user_id, now):
        return subscores.work_hours_score(self._week_sessions(user_id, now), now)

    def _breaks(self, user_id, now):
        breaks = BreakRecord.query.filter_by(user_id=user_id, date=now.date().isoformat()).all()
        return subscores.break_score(breaks, self._week_sessions(user_id, now), now)

    def _commit_patterns(self, user_id, now):
        return subscores.commit_pattern_score(self.commit_analytics(user_id, now))

    def _coding_time(self, user_id, now):
        return subscores.coding_time_score(self.coding_time_analytics(user_id))

    def _week_sessions(self, user_id, now):
        return WorkSession.query.filter(
            WorkSession.user_id == user_id,
            WorkSession.start_time >= now - timedelta(days=7),
        ).all()

    def collect_sub_scores(self, user_id: int, now: datetime) -> Dict[Source, SubScore]:
        calculators = {
            Source.VELOCITY: self._velocity,
            Source.MOOD: self._mood,
            Source.WORK_HOURS: self._work_hours,
            Source.BREAKS: self._breaks,
            Source.COMMIT_PATTERNS: self._commit_patterns,
            Source.CODING_TIME: self._coding_time,
        }

        scores = {}
        for source, calculate in calculators.items():
            try:
                scores[source] = calculate(user_id, now)
            except SourceUnavailableError as e:
                logger.info(f"{source.value} skipped for user {user_id}: {str(e)}")
                scores[source] = SubScore.unavailable()
            except Exception as e:
                logger.warning(
                    f"{source.value} data unavailable for user {user_id}: {str(e)}",
                    exc_info=True,
                )
                db.session.rollback()
                scores[source] = SubScore.unavailable()
        return scores

    def _recent_trend(self, user_id, now):
        rows = get_recent_scores(user_id, now.date(), limit=risk_model.TREND_WINDOW)
        # Days stored without any source data carry no signal
        return [
            row.risk_score for row in rows
            if not (row.factors or {}).get('insufficientData', False)
        ]

    def calculate(self, user_id: Optional[int], now: Optional[datetime] = None) -> BurnoutResult:
        if not user_id:
            raise AuthenticationError("A user identity is required to compute a burnout score")

        now = now or self.clock()
        today = now.date().isoformat()

        scores = self.collect_sub_scores(user_id, now)
        weights = risk_model.effective_weights(scores)
        trend = risk_model.trend_modifier(self._recent_trend(user_id, now))
        severity = risk_model.severity_modifier(scores)
        factors = BurnoutFactors(
            scores=scores,
            weights=weights,
            trend_modifier=trend,
            severity_modifier=severity,
        )

        if factors.insufficient_data:
            risk_score = 0
            logger.info(f"No data sources available for user {user_id} on {today}")
        else:
            risk_score = risk_model.composite_score(scores, weights, trend, severity)

        record = upsert_burnout_score(user_id, today, risk_score, factors.to_dict())
        should_notify = evaluate_notification(user_id, today, risk_score, factors.insufficient_data)

        logger.info(
            f"Burnout score for user {user_id} on {today}: {risk_score} "
            f"({len(factors.available_sources)}/6 sources, trend {trend:+d}, severity +{severity})"
        )
        return BurnoutResult(
            risk_score=risk_score,
            factors=factors,
            should_notify=should_notify,
            record=record,
        )


def calculate_burnout_score(user_id: Optional[int], now: Optional[datetime] = None) -> BurnoutResult:
    return BurnoutEngine().calculate(user_id, now)
