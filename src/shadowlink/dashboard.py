"""Read-only statistics and style analytics over a user's conversations."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

from .history import collect_messages, render_history
from .models import (
    AI_SENDER,
    USER_SENDER,
    ConversationPatterns,
    DashboardData,
    DayVolume,
    DistributionSlice,
    FutureProjection,
    Message,
    utcnow,
)
from .templates import analyze_conversation_patterns, project_future_self
from .tools import DEFAULT_TOPIC

logger = logging.getLogger(__name__)

VOLUME_DAYS = 7
UNDETERMINED = "Could not be determined."


def day_label(day: date) -> str:
    """Short chart label, e.g. "Oct 19"."""
    return f"{day:%b} {day.day}"


def message_volume(
    messages: List[Message], now: datetime, days: int = VOLUME_DAYS
) -> List[DayVolume]:
    """Per-day user/AI counts for the trailing ``days`` calendar days, oldest first.

    Messages without a timestamp are left out.
    """
    today = now.date()
    volume = [
        DayVolume(date=day_label(today - timedelta(days=offset)))
        for offset in reversed(range(days))
    ]
    for msg in messages:
        created = msg.created_at
        if created is None:
            continue
        if created.tzinfo is not None and now.tzinfo is not None:
            created = created.astimezone(now.tzinfo)
        offset = (today - created.date()).days
        if 0 <= offset < days:
            bucket = volume[days - 1 - offset]
            if msg.sender == USER_SENDER:
                bucket.user += 1
            else:
                bucket.ai += 1
    return volume


class Dashboard:
    """Aggregates a user's conversations for the dashboard view.

    Bound to an application object exposing ``store``, ``llm``, ``tools``
    and ``settings``.
    """

    def __init__(self, app: Any = None):
        self.app = app

    def build(self, user_id: str, now: Optional[datetime] = None) -> DashboardData:
        now = now or utcnow()
        conversations = self.app.store.load_user_conversations(user_id)
        messages = collect_messages(conversations)

        user_messages = sum(1 for msg in messages if msg.sender == USER_SENDER)
        ai_messages = len(messages) - user_messages

        data = DashboardData(
            total_conversations=len(conversations),
            total_messages=len(messages),
            user_messages=user_messages,
            ai_messages=ai_messages,
            message_volume=message_volume(messages, now),
            message_distribution=[
                DistributionSlice(name="User", value=user_messages),
                DistributionSlice(name="AI", value=ai_messages),
            ],
        )

        if len(messages) > self.app.settings.DASHBOARD_ANALYSIS_MIN_MESSAGES:
            history = render_history(messages)
            data.trajectory_analysis, data.future_self = self._analyze(history)

        return data

    def _analyze(self, history: str):
        llm, tools = self.app.llm, self.app.tools
        with ThreadPoolExecutor(max_workers=2) as executor:
            patterns = executor.submit(analyze_conversation_patterns, llm, history)
            future = executor.submit(project_future_self, llm, history, tools)

            try:
                trajectory = patterns.result()
            except Exception:
                logger.exception("Error analyzing conversation patterns")
                trajectory = ConversationPatterns(
                    writing_style=UNDETERMINED,
                    tone=UNDETERMINED,
                    response_patterns=UNDETERMINED,
                )

            try:
                future_self = future.result()
            except Exception:
                logger.exception("Error projecting future self")
                future_self = FutureProjection(
                    topic=DEFAULT_TOPIC, projection=UNDETERMINED
                )

        return trajectory, future_self
