"""Per-activity productivity scoring and session-level aggregation"""
import logging
from typing import Dict, List, Optional, Sequence

from focuslens.models.activity import ActivityRecord, AppCategory, ProductivityRating
from focuslens.models.metrics import ProductivityMetrics
from focuslens.models.session import WorkSession
from focuslens.services.categories import AppCategoryStore
from focuslens.services.clock import HOUR_MS, Clock, local_date, local_hour, system_clock
from focuslens.services.errors import EmptySessionError
from focuslens.services.focus import AdvancedFocusDetector

logger = logging.getLogger(__name__)

Categories = Dict[str, AppCategory]

PRODUCTIVITY_WEIGHTS: Dict[str, float] = {
    "productive": 1.0,
    "neutral": 0.5,
    "distracting": 0.0,
}

class ProductivityAnalytics:
    """Scores activities against the app category map.

    Category data is snapshotted once per computation; callers scoring a
    batch can pass ``categories`` to share a single snapshot.
    """

    SESSION_BREAK_THRESHOLD = 300000  # 5 minutes

    def __init__(
        self,
        categories: Optional[AppCategoryStore] = None,
        focus_detector: Optional[AdvancedFocusDetector] = None,
        clock: Clock = system_clock
    ):
        self.categories = categories or AppCategoryStore()
        self.focus_detector = focus_detector or AdvancedFocusDetector()
        self.clock = clock

    def calculate_productivity_score(
        self,
        activity: ActivityRecord,
        categories: Optional[Categories] = None
    ) -> float:
        """Score in [0, 1]: category weight plus duration/CPU/switch bonuses"""
        if categories is None:
            categories = self.categories.snapshot()

        category = categories.get(activity.app_name)
        score = PRODUCTIVITY_WEIGHTS["neutral"]
        if category:
            score = PRODUCTIVITY_WEIGHTS.get(category.productivity_rating, PRODUCTIVITY_WEIGHTS["neutral"])

        if activity.duration > 300000:
            score += 0.1
        if activity.cpu_usage and 10 < activity.cpu_usage < 80:
            score += 0.1
        if activity.context_switches is not None and activity.context_switches < 5:
            score += 0.1

        return max(0.0, min(1.0, score))

    @staticmethod
    def rate(score: float) -> ProductivityRating:
        if score >= 0.7:
            return "productive"
        if score >= 0.3:
            return "neutral"
        return "distracting"

    def enrich(self, activity: ActivityRecord, categories: Optional[Categories] = None) -> ActivityRecord:
        """Copy of the activity with its productivity rating and category filled in"""
        if categories is None:
            categories = self.categories.snapshot()
        score = self.calculate_productivity_score(activity, categories)
        category = categories.get(activity.app_name)
        return activity.model_copy(update={
            "productivity_rating": self.rate(score),
            "category": activity.category or (category.category if category else None),
        })

    def calculate_focus_score(self, activities: Sequence[ActivityRecord]) -> float:
        return self.focus_detector.calculate_focus_score(activities)

    def detect_context_switches(self, activities: Sequence[ActivityRecord]) -> int:
        return len(self.focus_detector.detect_context_switches(activities))

    def analyze_productivity_patterns(self, activities: Sequence[ActivityRecord]) -> ProductivityMetrics:
        """Aggregate time buckets, focus and session rhythm for an activity list"""
        if not activities:
            return ProductivityMetrics(date=local_date(self.clock()).isoformat())

        categories = self.categories.snapshot()
        productive_time = neutral_time = distracting_time = 0
        context_switches = 0
        # hour -> [tracked time, duration-weighted score]
        hourly: Dict[int, List[float]] = {}

        for activity in activities:
            score = self.calculate_productivity_score(activity, categories)
            rating = self.rate(score)
            if rating == "productive":
                productive_time += activity.duration
            elif rating == "neutral":
                neutral_time += activity.duration
            else:
                distracting_time += activity.duration
            context_switches += activity.context_switches or 0

            bucket = hourly.setdefault(local_hour(activity.timestamp), [0, 0.0])
            bucket[0] += activity.duration
            bucket[1] += score * activity.duration

        total_time = sum(a.duration for a in activities)
        boundaries = self.detect_session_boundaries(activities)
        hours_tracked = total_time / HOUR_MS

        return ProductivityMetrics(
            date=local_date(activities[0].timestamp).isoformat(),
            total_active_time=total_time,
            productive_time=productive_time,
            neutral_time=neutral_time,
            distracting_time=distracting_time,
            focus_score=self.calculate_focus_score(activities),
            context_switches=context_switches,
            peak_productivity_hour=self._peak_hour(hourly),
            break_frequency=len(boundaries) / hours_tracked if hours_tracked > 0 else 0.0,
            average_session_duration=self._average_session_duration(activities, boundaries)
        )

    def create_work_session(self, activities: Sequence[ActivityRecord]) -> WorkSession:
        """Build a WorkSession; raises EmptySessionError for an empty list"""
        if not activities:
            raise EmptySessionError("Cannot create session from empty activities")

        categories = self.categories.snapshot()
        start_time = min(a.timestamp for a in activities)
        end_time = max(a.end_time for a in activities)

        app_times: Dict[str, int] = {}
        for activity in activities:
            app_times[activity.app_name] = app_times.get(activity.app_name, 0) + activity.duration
        dominant_app = max(app_times, key=app_times.get)

        average = sum(
            self.calculate_productivity_score(a, categories) for a in activities
        ) / len(activities)
        rating: ProductivityRating = "neutral"
        if average >= 0.7:
            rating = "productive"
        elif average <= 0.3:
            rating = "distracting"

        dominant_category = categories.get(dominant_app)
        return WorkSession(
            start_time=start_time,
            end_time=end_time,
            duration=end_time - start_time,
            focus_score=self.calculate_focus_score(activities),
            productivity_rating=rating,
            context_switches=self.detect_context_switches(activities),
            break_duration=0,
            dominant_app=dominant_app,
            dominant_category=dominant_category.category if dominant_category else "Unknown"
        )

    def detect_session_boundaries(self, activities: Sequence[ActivityRecord]) -> List[int]:
        """Indexes of activities that follow a gap of more than 5 minutes"""
        return [
            index for index in range(1, len(activities))
            if activities[index].timestamp - activities[index - 1].end_time > self.SESSION_BREAK_THRESHOLD
        ]

    def _peak_hour(self, hourly: Dict[int, List[float]]) -> int:
        peak_hour, peak_score = 9, 0.0
        for hour in sorted(hourly):
            time_spent, weighted = hourly[hour]
            average = weighted / time_spent if time_spent > 0 else 0.0
            if average > peak_score:
                peak_hour, peak_score = hour, average
        return peak_hour

    def _average_session_duration(self, activities: Sequence[ActivityRecord], boundaries: List[int]) -> float:
        edges = [0] + boundaries + [len(activities)]
        sessions = [
            sum(a.duration for a in activities[start:end])
            for start, end in zip(edges, edges[1:])
            if end > start
        ]
        return sum(sessions) / len(sessions) if sessions else 0.0
