import logging

from services.score_store import claim_notification, get_user_settings

logger = logging.getLogger(__name__)


def evaluate_notification(user_id: int, day: str, risk_score: int, insufficient_data: bool = False) -> bool:
    """Decide whether the caller should alert the user about today's score.

    Returns True at most once per (user, day), no matter how often the score
    is recomputed or how many computations race.
    """
    if insufficient_data:
        return False

    settings = get_user_settings(user_id)
    if not settings.notifications_enabled:
        return False
    if risk_score < settings.risk_threshold:
        return False

    claimed = claim_notification(user_id, day)
    if claimed:
        logger.info(
            f"Burnout risk {risk_score} crossed threshold {settings.risk_threshold} "
            f"for user {user_id} on {day}"
        )
    return claimed
