"""Real-time productivity scoring, daily trends and settings optimization"""
import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from focuslens.config.settings import settings
from focuslens.models.activity import ActivityFilter, ActivityRecord
from focuslens.models.insights import PRIORITY_ORDER, ProductivityInsight
from focuslens.models.metrics import (
    ProductivityMetrics, ProductivityOptimization, ProductivityTrend, WorkHours, WorkPattern
)
from focuslens.services.analytics import Categories, ProductivityAnalytics
from focuslens.services.clock import DAY_MS, HOUR_MS, Clock, day_bounds, local_date, local_hour, system_clock
from focuslens.services.monitor import SystemResourceMonitor

logger = logging.getLogger(__name__)

T = TypeVar("T")

class TrendCache(Generic[T]):
    """Keyed cache whose entries expire ``ttl`` milliseconds after being stored"""

    def __init__(self, ttl: Optional[int] = None, clock: Clock = system_clock):
        self.ttl = ttl if ttl is not None else settings.TREND_CACHE_TTL_SECONDS * 1000
        self.clock = clock
        self._entries: Dict[Any, Tuple[T, int]] = {}

    def get(self, key) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self.clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key, value: T) -> None:
        self._entries[key] = (value, self.clock())

    def clear(self) -> None:
        self._entries.clear()

class RealTimeProductivityCalculator:
    """Combines scoring, resource data and recent context into trends and advice"""

    CONTEXT_WINDOW = 1800000  # 30 minutes
    DEFAULT_SCORE = 0.5
    DEFAULT_WORK_HOURS = WorkHours(start=9, end=17)
    BREAK_INTERVAL_MINUTES = 90

    def __init__(
        self,
        db,
        analytics: ProductivityAnalytics,
        resource_monitor: SystemResourceMonitor,
        clock: Clock = system_clock,
        cache: Optional[TrendCache] = None
    ):
        self.db = db
        self.analytics = analytics
        self.resource_monitor = resource_monitor
        self.clock = clock
        self.trend_cache: TrendCache[List[ProductivityTrend]] = cache or TrendCache(clock=clock)

    async def calculate_real_time_score(self, activity: ActivityRecord) -> float:
        """Base score adjusted for system load, time of day and recent switching"""
        try:
            score = self.analytics.calculate_productivity_score(activity)

            metrics = await self.resource_monitor.get_system_metrics()
            correlation = self.resource_monitor.correlate_resources_with_productivity(activity, metrics)
            score *= correlation.performance_score
            score *= self.time_of_day_factor(activity.timestamp)
            score *= await self._context_factor(activity)

            return max(0.0, min(1.0, score))
        except Exception as e:
            logger.error(f"Error calculating real-time productivity score: {e}")
            return self.DEFAULT_SCORE

    @staticmethod
    def time_of_day_factor(timestamp: int) -> float:
        hour = local_hour(timestamp)
        if 9 <= hour <= 11 or 14 <= hour <= 16:
            return 1.1
        if 8 <= hour <= 12 or 13 <= hour <= 17:
            return 1.0
        if 18 <= hour <= 22:
            return 0.9
        return 0.7

    async def _context_factor(self, activity: ActivityRecord) -> float:
        """Switching-based multiplier over the preceding 30 minutes; neutral if unavailable"""
        try:
            recent = await self.db.get_activities(ActivityFilter(
                start=activity.timestamp - self.CONTEXT_WINDOW,
                end=activity.timestamp
            ))
        except Exception as e:
            logger.warning(f"Failed to get recent context, using neutral adjustment: {e}")
            return 1.0
        if not recent:
            return 1.0

        switches = self.analytics.detect_context_switches(recent)
        if switches > 10:
            return 0.8
        if switches > 5:
            return 0.9
        if self.analytics.calculate_focus_score(recent) > 0.8:
            return 1.1
        return 1.0

    async def get_productivity_trends(self, days: int) -> List[ProductivityTrend]:
        """One trend per day with activity over the last ``days`` local days.

        Results are cached per ``days`` for the cache TTL.
        """
        cached = self.trend_cache.get(days)
        if cached is not None:
            return cached

        try:
            today = local_date(self.clock())
            dates = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
            daily = await asyncio.gather(*(
                self.db.get_activities(ActivityFilter(start=start, end=end))
                for start, end in (day_bounds(d) for d in dates)
            ))

            categories = self.analytics.categories.snapshot()
            trends = [
                self._build_trend(d.isoformat(), activities, categories)
                for d, activities in zip(dates, daily)
                if activities
            ]
        except Exception as e:
            logger.error(f"Error getting productivity trends: {e}")
            return []

        self.trend_cache.set(days, trends)
        logger.debug(f"Computed {len(trends)} daily trends for the last {days} days")
        return trends

    def _build_trend(self, day: str, activities: List[ActivityRecord], categories: Categories) -> ProductivityTrend:
        metrics = self.analytics.analyze_productivity_patterns(activities)
        return ProductivityTrend(
            date=day,
            productivity_score=self.overall_productivity_score(metrics),
            focus_score=metrics.focus_score,
            efficiency=self._efficiency(activities),
            top_productive_apps=self._top_apps(activities, categories, "productive", 3),
            top_distracting_apps=self._top_apps(activities, categories, "distracting", 3),
            peak_hours=self._peak_hours(activities),
            total_active_time=metrics.total_active_time
        )

    @staticmethod
    def overall_productivity_score(metrics: ProductivityMetrics) -> float:
        ratio = metrics.productive_time / metrics.total_active_time if metrics.total_active_time > 0 else 0.0
        return (ratio + metrics.focus_score) / 2

    def _efficiency(self, activities: Sequence[ActivityRecord]) -> float:
        if sum(a.duration for a in activities) == 0:
            return 0.0
        penalty = min(0.5, self.analytics.detect_context_switches(activities) * 0.01)
        return max(0.0, 1 - penalty)

    def _top_apps(
        self,
        activities: Sequence[ActivityRecord],
        categories: Categories,
        rating: str,
        count: int
    ) -> List[str]:
        """Longest-used apps with the given rating (recorded, else from the category map)"""
        app_times: Dict[str, int] = {}
        for activity in activities:
            category = categories.get(activity.app_name)
            activity_rating = activity.productivity_rating or (category.productivity_rating if category else None)
            if activity_rating == rating:
                app_times[activity.app_name] = app_times.get(activity.app_name, 0) + activity.duration
        return _top_keys(app_times, count)

    @staticmethod
    def _peak_hours(activities: Sequence[ActivityRecord]) -> List[int]:
        hourly: Dict[int, int] = {}
        for activity in activities:
            hour = local_hour(activity.timestamp)
            hourly[hour] = hourly.get(hour, 0) + activity.duration
        return _top_keys(hourly, 3)

    async def optimize_productivity_settings(self) -> ProductivityOptimization:
        """Suggested work hours, break interval and recommendations from 30 days of trends"""
        try:
            trends = await self.get_productivity_trends(30)
            recent = await self._recent_activities(7)

            return ProductivityOptimization(
                recommendations=self._general_recommendations(trends),
                optimal_work_hours=self.find_optimal_work_hours(trends),
                suggested_break_interval=self.BREAK_INTERVAL_MINUTES,
                focus_improvements=self._focus_recommendations(trends),
                resource_optimizations=self._resource_recommendations(recent)
            )
        except Exception as e:
            logger.error(f"Error optimizing productivity settings: {e}")
            return self.default_optimization()

    def find_optimal_work_hours(self, trends: Sequence[ProductivityTrend]) -> WorkHours:
        hour_counts: Dict[int, int] = {}
        for trend in trends:
            for hour in trend.peak_hours:
                hour_counts[hour] = hour_counts.get(hour, 0) + 1

        top = _top_keys(hour_counts, 2)
        if len(top) < 2:
            return WorkHours(self.DEFAULT_WORK_HOURS.start, self.DEFAULT_WORK_HOURS.end)
        return WorkHours(start=min(top), end=min(max(top) + 8, 18))

    def _general_recommendations(self, trends: Sequence[ProductivityTrend]) -> List[str]:
        recommendations = []
        recent = trends[-3:]
        if recent and sum(t.productivity_score for t in recent) / len(recent) < 0.6:
            recommendations.append("Consider implementing time-blocking techniques to improve focus")
            recommendations.append("Review and categorize your applications to identify productivity drains")
        if any(t.total_active_time > 10 * HOUR_MS for t in trends):
            recommendations.append("Consider reducing daily screen time to prevent burnout")
        return recommendations

    def _focus_recommendations(self, trends: Sequence[ProductivityTrend]) -> List[str]:
        if not trends:
            return []
        if sum(t.focus_score for t in trends) / len(trends) >= 0.5:
            return []
        return [
            "Try the Pomodoro Technique: 25 minutes focused work, 5 minute breaks",
            "Use website blockers during focused work sessions",
            "Create a dedicated workspace free from distractions",
        ]

    def _resource_recommendations(self, activities: Sequence[ActivityRecord]) -> List[str]:
        apps = self.resource_monitor.detect_resource_intensive_apps(activities)
        if not any(app.category == "extreme" for app in apps):
            return []
        return [
            "Consider upgrading system RAM for better performance",
            "Close unnecessary background applications",
            "Monitor resource-intensive applications and consider alternatives",
        ]

    def default_optimization(self) -> ProductivityOptimization:
        return ProductivityOptimization(
            recommendations=["Enable activity tracking to get personalized recommendations"],
            optimal_work_hours=WorkHours(self.DEFAULT_WORK_HOURS.start, self.DEFAULT_WORK_HOURS.end),
            suggested_break_interval=self.BREAK_INTERVAL_MINUTES,
            focus_improvements=["Start tracking your activities to get focus insights"],
            resource_optimizations=["Monitor system resources for optimization suggestions"]
        )

    async def _recent_activities(self, days: int) -> List[ActivityRecord]:
        end = self.clock()
        return await self.db.get_activities(ActivityFilter(start=end - days * DAY_MS, end=end))

    async def generate_productivity_insights(self, start: int, end: int) -> List[ProductivityInsight]:
        """Focus, time, app, resource and break insights for a time range, most urgent first"""
        try:
            activities = await self.db.get_activities(ActivityFilter(start=start, end=end))
        except Exception as e:
            logger.error(f"Error generating productivity insights: {e}")
            return []

        metrics = self.analytics.analyze_productivity_patterns(activities)
        now = self.clock()
        insights = (
            self._focus_insights(metrics, now)
            + self._time_management_insights(metrics, now)
            + self._app_usage_insights(activities, now)
            + self._resource_insights(activities, now)
            + self._break_insights(activities, now)
        )
        return sorted(insights, key=lambda i: PRIORITY_ORDER[i.priority], reverse=True)

    def _focus_insights(self, metrics: ProductivityMetrics, now: int) -> List[ProductivityInsight]:
        insights = []
        if metrics.total_active_time > 0 and metrics.focus_score < 0.5:
            insights.append(ProductivityInsight(
                id=f"focus_low_{now}",
                type="focus_improvement",
                title="Low Focus Detected",
                description=(
                    f"Your focus score is {metrics.focus_score * 100:.1f}%. "
                    "Consider reducing distractions and taking regular breaks."
                ),
                actionable=True,
                priority="high",
                timestamp=now
            ))
        if metrics.context_switches > 50:
            insights.append(ProductivityInsight(
                id=f"context_switch_{now}",
                type="focus_improvement",
                title="High Context Switching",
                description=(
                    f"You switched between apps {metrics.context_switches} times. "
                    "Try to batch similar tasks together."
                ),
                actionable=True,
                priority="medium",
                timestamp=now
            ))
        return insights

    def _time_management_insights(self, metrics: ProductivityMetrics, now: int) -> List[ProductivityInsight]:
        if metrics.total_active_time == 0:
            return []
        productive = metrics.productive_time / metrics.total_active_time * 100
        if productive > 70:
            return [ProductivityInsight(
                id=f"productivity_high_{now}",
                type="focus_improvement",
                title="Excellent Productivity",
                description=f"{productive:.1f}% of your time was spent productively. Keep up the great work!",
                actionable=False,
                priority="low",
                timestamp=now
            )]
        if productive < 40:
            return [ProductivityInsight(
                id=f"productivity_low_{now}",
                type="focus_improvement",
                title="Low Productive Time",
                description=(
                    f"Only {productive:.1f}% of your time was productive. "
                    "Consider reviewing your app usage and eliminating distractions."
                ),
                actionable=True,
                priority="high",
                timestamp=now
            )]
        return []

    def _app_usage_insights(self, activities: Sequence[ActivityRecord], now: int) -> List[ProductivityInsight]:
        app_times: Dict[str, int] = {}
        for activity in activities:
            app_times[activity.app_name] = app_times.get(activity.app_name, 0) + activity.duration
        top = _top_keys(app_times, 1)
        if not top or app_times[top[0]] <= 2 * HOUR_MS:
            return []
        return [ProductivityInsight(
            id=f"app_usage_{now}",
            type="app_recommendation",
            title="High App Usage",
            description=(
                f"You spent {app_times[top[0]] / HOUR_MS:.1f} hours in {top[0]}. "
                "Consider if this aligns with your productivity goals."
            ),
            actionable=True,
            priority="medium",
            timestamp=now
        )]

    def _resource_insights(self, activities: Sequence[ActivityRecord], now: int) -> List[ProductivityInsight]:
        return [
            ProductivityInsight(
                id=f"resource_{now}_{app.app_name}",
                type="app_recommendation",
                title="Resource-Intensive App",
                description=(
                    f"{app.app_name} is using significant system resources "
                    f"(CPU: {app.avg_cpu_usage:.1f}%, Memory: {app.avg_memory_usage:.1f}%). "
                    "Consider optimizing or finding alternatives."
                ),
                actionable=True,
                priority="high",
                timestamp=now
            )
            for app in self.resource_monitor.detect_resource_intensive_apps(activities)[:3]
            if app.category == "extreme"
        ]

    def _break_insights(self, activities: Sequence[ActivityRecord], now: int) -> List[ProductivityInsight]:
        hours = sum(a.duration for a in activities) / HOUR_MS
        if hours <= 4:
            return []
        return [ProductivityInsight(
            id=f"break_{now}",
            type="break_suggestion",
            title="Break Reminder",
            description=(
                f"You've been working for {hours:.1f} hours. "
                "Consider taking regular breaks to maintain productivity."
            ),
            actionable=True,
            priority="medium",
            timestamp=now
        )]

    def analyze_work_patterns(self, activities: Sequence[ActivityRecord]) -> List[WorkPattern]:
        """One daily pattern per hour of day, most confident first"""
        by_hour: Dict[int, List[ActivityRecord]] = {}
        for activity in activities:
            by_hour.setdefault(local_hour(activity.timestamp), []).append(activity)

        now = self.clock()
        patterns = []
        for hour, hour_activities in sorted(by_hour.items()):
            focus = self.analytics.analyze_productivity_patterns(hour_activities).focus_score
            app_times: Dict[str, int] = {}
            for activity in hour_activities:
                app_times[activity.app_name] = app_times.get(activity.app_name, 0) + activity.duration

            impact = "neutral"
            if focus > 0.6:
                impact = "positive"
            elif focus < 0.4:
                impact = "negative"

            patterns.append(WorkPattern(
                id=f"pattern_{hour}_{now}",
                type="daily",
                name=f"Hour {hour} Pattern",
                description=f"Productivity pattern for hour {hour}",
                confidence=focus,
                frequency=len(hour_activities),
                start_hour=hour,
                end_hour=hour + 1,
                associated_apps=_top_keys(app_times, 3),
                productivity_impact=impact,
                detected_at=now,
                last_seen=now
            ))
        return sorted(patterns, key=lambda p: p.confidence, reverse=True)

def _top_keys(totals: Dict, count: int) -> List:
    return [key for key, _ in sorted(totals.items(), key=lambda item: item[1], reverse=True)[:count]]
