"""Detect stretches spent in distracting applications and summarize them"""
import logging
from typing import Dict, List, Optional, Sequence

from focuslens.config.settings import settings
from focuslens.models.activity import ActivityFilter, ActivityRecord
from focuslens.models.patterns import (
    AppDistraction, DistractionEvent, DistractionSeverity, DistractionStats, DistractionTimeframe
)
from focuslens.services.analytics import Categories
from focuslens.services.categories import AppCategoryStore
from focuslens.services.clock import DAY_MS, MINUTE_MS, Clock, system_clock
from focuslens.services.errors import AnalyticsError

logger = logging.getLogger(__name__)

TIMEFRAME_DAYS: Dict[str, int] = {"day": 1, "week": 7, "month": 30}

class DistractionDetector:
    """Finds uninterrupted runs of a distracting app lasting at least the threshold.

    An activity counts as distracting when its recorded rating, or else its
    app's category rating, is ``distracting``.
    """

    def __init__(
        self,
        db,
        categories: AppCategoryStore,
        clock: Clock = system_clock,
        threshold_minutes: Optional[int] = None
    ):
        self.db = db
        self.categories = categories
        self.clock = clock
        minutes = threshold_minutes if threshold_minutes is not None else settings.DISTRACTION_THRESHOLD_MINUTES
        self.threshold = minutes * MINUTE_MS

    def detect_distractions(
        self,
        activities: Sequence[ActivityRecord],
        categories: Optional[Categories] = None
    ) -> List[DistractionEvent]:
        categories = categories if categories is not None else self.categories.snapshot()
        events = []
        run: List[ActivityRecord] = []
        for activity in activities:
            if run and run[-1].app_name != activity.app_name:
                self._close_run(run, categories, events)
                run = []
            run.append(activity)
        self._close_run(run, categories, events)
        return events

    def _close_run(self, run: List[ActivityRecord], categories: Categories, events: List[DistractionEvent]) -> None:
        if not run or not self._is_distracting(run[0], categories):
            return
        duration = sum(a.duration for a in run)
        if duration < self.threshold:
            return
        events.append(DistractionEvent(
            timestamp=run[-1].end_time,
            app_name=run[0].app_name,
            duration=duration,
            severity=self.severity(duration),
            context=f"Spent {int(duration / MINUTE_MS + 0.5)} minutes on potentially distracting app"
        ))

    @staticmethod
    def _is_distracting(activity: ActivityRecord, categories: Categories) -> bool:
        if activity.productivity_rating:
            return activity.productivity_rating == "distracting"
        category = categories.get(activity.app_name)
        return category is not None and category.productivity_rating == "distracting"

    @staticmethod
    def severity(duration: int) -> DistractionSeverity:
        if duration > 15 * MINUTE_MS:
            return "high"
        if duration < 2 * MINUTE_MS:
            return "low"
        return "medium"

    async def get_distraction_stats(self, timeframe: DistractionTimeframe = "day") -> DistractionStats:
        """Totals, top five apps by time and severity counts over the trailing timeframe"""
        if timeframe not in TIMEFRAME_DAYS:
            raise AnalyticsError(f"Unknown timeframe: {timeframe}")

        end = self.clock()
        try:
            activities = await self.db.get_activities(
                ActivityFilter(start=end - TIMEFRAME_DAYS[timeframe] * DAY_MS, end=end)
            )
        except Exception as e:
            logger.error(f"Failed to get distraction stats: {e}")
            return DistractionStats()

        return self.summarize(self.detect_distractions(activities))

    @staticmethod
    def summarize(events: Sequence[DistractionEvent]) -> DistractionStats:
        stats = DistractionStats()
        by_app: Dict[str, AppDistraction] = {}
        for event in events:
            stats.total_events += 1
            stats.total_distraction_time += event.duration
            stats.severity_breakdown[event.severity] += 1
            app = by_app.setdefault(event.app_name, AppDistraction(event.app_name, 0, 0))
            app.count += 1
            app.total_time += event.duration

        if stats.total_events:
            stats.average_distraction_duration = stats.total_distraction_time / stats.total_events
        stats.top_distracting_apps = sorted(by_app.values(), key=lambda a: a.total_time, reverse=True)[:5]
        return stats
