"""Generate achievements, warnings and insights from activities and daily trends"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from focuslens.models.activity import ActivityFilter, ActivityRecord
from focuslens.models.insights import (
    PRIORITY_ORDER, Achievement, InsightPriority, InsightReport, ProductivityInsight, ProductivityWarning
)
from focuslens.models.metrics import ProductivityTrend
from focuslens.services.analytics import ProductivityAnalytics
from focuslens.services.clock import DAY_MS, HOUR_MS, Clock, local_hour, system_clock
from focuslens.services.notifier import LoggingNotifier, Notifier
from focuslens.services.productivity import RealTimeProductivityCalculator

logger = logging.getLogger(__name__)

ACHIEVEMENT_THRESHOLDS: Dict[str, Dict[str, float]] = {
    "productivity_score": {"good": 0.7, "excellent": 0.85, "outstanding": 0.95},
    "focus_score": {"good": 0.6, "excellent": 0.8, "outstanding": 0.9},
    "consistency_days": {"good": 7, "excellent": 14, "outstanding": 30},
    "efficiency_improvement": {"good": 0.1, "excellent": 0.2, "outstanding": 0.3},
}

WARNING_THRESHOLDS = {
    "declining_productivity": {"days": 3, "threshold": 0.15},
    "excessive_distraction": {"context_switches": 100, "focus_score": 0.3},
    "burnout_risk": {"hours_per_day": 10, "days_in_row": 5},
    "poor_focus": {"days": 5, "threshold": 0.4},
}

CONSISTENT_DAY_SCORE = 0.6
HIGH_SWITCH_RATE = 20  # switches per hour

# (title, badge) per tier
PRODUCTIVITY_TIERS = {
    "outstanding": ("Outstanding Productivity", "🏆"),
    "excellent": ("Excellent Productivity", "⭐"),
    "good": ("Good Productivity", "👍"),
}
FOCUS_TIERS = {
    "outstanding": ("Focus Master", "🎯"),
    "excellent": ("Deep Focus", "🔍"),
    "good": ("Steady Focus", "🧘"),
}
CONSISTENCY_TIERS = {
    "outstanding": ("Consistency Champion", "📈"),
    "excellent": ("Two Week Streak", "🔥"),
    "good": ("One Week Streak", "✅"),
}

def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0

def _tier(value: float, thresholds: Dict[str, float]) -> Optional[str]:
    """Highest tier whose threshold ``value`` reaches"""
    for tier in ("outstanding", "excellent", "good"):
        if value >= thresholds[tier]:
            return tier
    return None

def _span_hours(activities: Sequence[ActivityRecord]) -> float:
    if not activities:
        return 0.0
    return (activities[-1].timestamp - activities[0].timestamp) / HOUR_MS

class AutomatedInsightGenerator:
    """Detection pass over activities and trends.

    ``generate`` is a pure function of its inputs and the clock;
    ``generate_automated_insights`` adds fetching, persistence and
    notification around it.
    """

    def __init__(
        self,
        db,
        analytics: ProductivityAnalytics,
        calculator: RealTimeProductivityCalculator,
        notifier: Optional[Notifier] = None,
        clock: Clock = system_clock
    ):
        self.db = db
        self.analytics = analytics
        self.calculator = calculator
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock

    async def generate_automated_insights(self, start: int, end: int) -> InsightReport:
        """Fetch, analyze, store and announce insights for a time range"""
        try:
            activities = await self.db.get_activities(ActivityFilter(start=start, end=end))
            trends = await self.calculator.get_productivity_trends(7)
        except Exception as e:
            logger.error(f"Failed to generate automated insights: {e}")
            return InsightReport()

        report = self.generate(activities, trends, await self._historical_average(30))

        for insight in report.insights:
            try:
                await self.db.save_insight(insight)
            except Exception as e:
                logger.error(f"Failed to save insight {insight.id}: {e}")

        for warning in report.warnings:
            self.notifier.notify_productivity_threshold(warning)
        if trends:
            self.notifier.notify_daily_summary(trends[-1])

        logger.info(
            f"Generated {len(report.insights)} insights, {len(report.achievements)} achievements "
            f"and {len(report.warnings)} warnings"
        )
        return report

    async def _historical_average(self, days: int) -> Optional[float]:
        try:
            trends = await self.calculator.get_productivity_trends(days)
        except Exception as e:
            logger.warning(f"Failed to get historical average: {e}")
            return 0.5
        if not trends:
            return None
        return _mean([t.productivity_score for t in trends])

    def generate(
        self,
        activities: Sequence[ActivityRecord],
        trends: Sequence[ProductivityTrend],
        historical_average: Optional[float] = None
    ) -> InsightReport:
        insights = self.generate_insights(activities, trends, historical_average)
        return InsightReport(
            achievements=self.detect_achievements(activities, trends),
            warnings=self.detect_warnings(activities, trends),
            insights=insights,
            recommendations=self.generate_actionable_recommendations(insights)
        )

    def detect_achievements(
        self,
        activities: Sequence[ActivityRecord],
        trends: Sequence[ProductivityTrend]
    ) -> List[Achievement]:
        if not trends:
            return []

        now = self.clock()
        achievements = []

        avg_productivity = _mean([t.productivity_score for t in trends])
        tier = _tier(avg_productivity, ACHIEVEMENT_THRESHOLDS["productivity_score"])
        if tier:
            title, badge = PRODUCTIVITY_TIERS[tier]
            achievements.append(Achievement(
                id=f"productivity_{tier}_{now}",
                type="productivity_milestone",
                title=title,
                description=f"Achieved {avg_productivity * 100:.1f}% average productivity over the last week!",
                timestamp=now,
                value=avg_productivity,
                threshold=ACHIEVEMENT_THRESHOLDS["productivity_score"][tier],
                category="weekly",
                badge=badge
            ))

        avg_focus = _mean([t.focus_score for t in trends])
        tier = _tier(avg_focus, ACHIEVEMENT_THRESHOLDS["focus_score"])
        if tier:
            title, badge = FOCUS_TIERS[tier]
            achievements.append(Achievement(
                id=f"focus_{tier}_{now}",
                type="focus_improvement",
                title=title,
                description=f"Achieved {avg_focus * 100:.1f}% average focus score!",
                timestamp=now,
                value=avg_focus,
                threshold=ACHIEVEMENT_THRESHOLDS["focus_score"][tier],
                category="weekly",
                badge=badge
            ))

        consistent_days = self.consistent_days(trends)
        tier = _tier(consistent_days, ACHIEVEMENT_THRESHOLDS["consistency_days"])
        if tier:
            title, badge = CONSISTENCY_TIERS[tier]
            achievements.append(Achievement(
                id=f"consistency_{tier}_{now}",
                type="consistency",
                title=title,
                description=f"Maintained consistent productivity for {consistent_days} days straight!",
                timestamp=now,
                value=consistent_days,
                threshold=ACHIEVEMENT_THRESHOLDS["consistency_days"][tier],
                category="weekly" if tier == "good" else "monthly",
                badge=badge
            ))

        improvement = self.efficiency_improvement(trends)
        if improvement >= ACHIEVEMENT_THRESHOLDS["efficiency_improvement"]["excellent"]:
            tier = _tier(improvement, ACHIEVEMENT_THRESHOLDS["efficiency_improvement"])
            achievements.append(Achievement(
                id=f"efficiency_improvement_{now}",
                type="efficiency",
                title="Efficiency Expert",
                description=f"Improved efficiency by {improvement * 100:.1f}% this week!",
                timestamp=now,
                value=improvement,
                threshold=ACHIEVEMENT_THRESHOLDS["efficiency_improvement"][tier],
                category="weekly",
                badge="⚡"
            ))

        return achievements

    def detect_warnings(
        self,
        activities: Sequence[ActivityRecord],
        trends: Sequence[ProductivityTrend]
    ) -> List[ProductivityWarning]:
        now = self.clock()
        warnings = []
        avg_focus = _mean([t.focus_score for t in trends]) if trends else None

        decline = self.productivity_decline(trends)
        decline_rules = WARNING_THRESHOLDS["declining_productivity"]
        if decline >= decline_rules["threshold"]:
            severity: InsightPriority = "medium"
            if decline >= 0.3:
                severity = "critical"
            elif decline >= 0.2:
                severity = "high"
            warnings.append(ProductivityWarning(
                id=f"declining_productivity_{now}",
                type="declining_productivity",
                severity=severity,
                title="Declining Productivity Detected",
                description=(
                    f"Your productivity has declined by {decline * 100:.1f}% "
                    f"over the last {decline_rules['days']} days."
                ),
                timestamp=now,
                trend="decreasing",
                threshold=decline_rules["threshold"],
                current_value=decline,
                recommendations=[
                    "Take a longer break to recharge",
                    "Review your current workload and priorities",
                    "Consider adjusting your work environment",
                    "Ensure you're getting adequate sleep",
                ]
            ))

        switch_rate = self.context_switches_per_hour(activities)
        distraction_rules = WARNING_THRESHOLDS["excessive_distraction"]
        low_focus = avg_focus is not None and avg_focus < distraction_rules["focus_score"]
        if switch_rate > distraction_rules["context_switches"] or low_focus:
            severity = "medium"
            if avg_focus is not None and avg_focus < 0.2:
                severity = "critical"
            elif low_focus:
                severity = "high"
            focus_value = avg_focus if avg_focus is not None else 0.0
            warnings.append(ProductivityWarning(
                id=f"excessive_distraction_{now}",
                type="excessive_distraction",
                severity=severity,
                title="High Distraction Level",
                description=(
                    f"You're experiencing {switch_rate:.1f} context switches per hour "
                    f"with a {focus_value * 100:.1f}% focus score."
                ),
                timestamp=now,
                trend="increasing",
                threshold=distraction_rules["focus_score"],
                current_value=focus_value,
                recommendations=[
                    "Use focus apps to block distracting websites",
                    "Turn off non-essential notifications",
                    "Try the Pomodoro technique",
                    "Create a dedicated workspace",
                ]
            ))

        daily_hours = self.average_daily_hours(activities)
        overwork_days = self.consecutive_overwork_days(trends)
        burnout_rules = WARNING_THRESHOLDS["burnout_risk"]
        if daily_hours > burnout_rules["hours_per_day"] or overwork_days >= burnout_rules["days_in_row"]:
            warnings.append(ProductivityWarning(
                id=f"burnout_risk_{now}",
                type="burnout_risk",
                severity="critical" if daily_hours > 12 else "high",
                title="Burnout Risk Detected",
                description=(
                    f"You've been working {daily_hours:.1f} hours per day, "
                    f"with {overwork_days} consecutive days over {burnout_rules['hours_per_day']} hours."
                ),
                timestamp=now,
                trend="increasing",
                threshold=burnout_rules["hours_per_day"],
                current_value=daily_hours,
                recommendations=[
                    "Schedule mandatory breaks throughout the day",
                    "Set strict work hour boundaries",
                    "Delegate tasks when possible",
                    "Consider taking a day off to recover",
                ]
            ))

        poor_days = self.poor_focus_days(trends)
        poor_rules = WARNING_THRESHOLDS["poor_focus"]
        if poor_days >= poor_rules["days"]:
            warnings.append(ProductivityWarning(
                id=f"poor_focus_{now}",
                type="poor_focus",
                severity="high" if poor_days >= 7 else "medium",
                title="Persistent Focus Issues",
                description=f"You've had below-average focus for {poor_days} out of the last 7 days.",
                timestamp=now,
                trend="stable",
                threshold=poor_rules["threshold"],
                current_value=avg_focus if avg_focus is not None else 0.0,
                recommendations=[
                    "Review your sleep schedule",
                    "Minimize multitasking",
                    "Try meditation or mindfulness exercises",
                    "Optimize your work environment for focus",
                ]
            ))

        return warnings

    def generate_insights(
        self,
        activities: Sequence[ActivityRecord],
        trends: Sequence[ProductivityTrend],
        historical_average: Optional[float] = None
    ) -> List[ProductivityInsight]:
        """Pattern, trend, comparative and optimization insights, most urgent and newest first"""
        now = self.clock()
        insights = (
            self._pattern_insights(activities, now)
            + self._trend_insights(trends, now)
            + self._comparative_insights(trends, historical_average, now)
            + self._optimization_insights(activities, now)
        )
        return sorted(insights, key=lambda i: (PRIORITY_ORDER.get(i.priority, 0), i.timestamp), reverse=True)

    def generate_actionable_recommendations(self, insights: Sequence[ProductivityInsight]) -> List[str]:
        types = {insight.type for insight in insights}
        recommendations = []
        if "focus_improvement" in types:
            recommendations += [
                "Schedule 25-minute focused work blocks with 5-minute breaks",
                "Use website blockers during focus sessions",
                "Turn off notifications during deep work periods",
            ]
        if "break_suggestion" in types:
            recommendations += [
                "Use time-blocking to allocate specific hours for different tasks",
                "Batch similar activities together to reduce context switching",
                "Set realistic daily goals and track progress",
                "Take a 15-minute walk every 2 hours",
                "Practice the 20-20-20 rule for eye strain",
                "Schedule longer breaks for meals and relaxation",
            ]
        if "app_recommendation" in types:
            recommendations += [
                "Review and optimize your most-used applications",
                "Consider alternatives for time-consuming apps",
                "Set app usage limits for distracting applications",
            ]
        return recommendations

    def _pattern_insights(self, activities: Sequence[ActivityRecord], now: int) -> List[ProductivityInsight]:
        peak_hours = self.peak_focus_hours(activities)
        if not peak_hours:
            return []
        return [ProductivityInsight(
            id=f"peak_hours_{now}",
            type="peak_hours",
            title="Peak Productivity Hours Identified",
            description=(
                f"Your most productive hours are {', '.join(peak_hours)}. "
                "Schedule important tasks during these times."
            ),
            actionable=True,
            priority="medium",
            timestamp=now
        )]

    def _trend_insights(self, trends: Sequence[ProductivityTrend], now: int) -> List[ProductivityInsight]:
        if len(trends) < 3:
            return []
        direction = self.trend_direction(trends[-3:])
        if direction == "improving":
            return [ProductivityInsight(
                id=f"trend_improving_{now}",
                type="focus_improvement",
                title="Productivity Improving",
                description="Your productivity has been steadily improving over the last 3 days. Keep up the great work!",
                actionable=False,
                priority="low",
                timestamp=now
            )]
        if direction == "declining":
            return [ProductivityInsight(
                id=f"trend_declining_{now}",
                type="break_suggestion",
                title="Productivity Declining",
                description="Your productivity has been declining. Consider reviewing your work habits and taking breaks.",
                actionable=True,
                priority="high",
                timestamp=now
            )]
        return []

    def _comparative_insights(
        self,
        trends: Sequence[ProductivityTrend],
        historical_average: Optional[float],
        now: int
    ) -> List[ProductivityInsight]:
        if not trends or not historical_average:
            return []
        current = _mean([t.productivity_score for t in trends])
        if current <= historical_average * 1.1:
            return []
        return [ProductivityInsight(
            id=f"above_average_{now}",
            type="focus_improvement",
            title="Above Average Performance",
            description=(
                f"Your current productivity is {(current / historical_average - 1) * 100:.1f}% "
                "higher than your 30-day average."
            ),
            actionable=False,
            priority="low",
            timestamp=now
        )]

    def _optimization_insights(self, activities: Sequence[ActivityRecord], now: int) -> List[ProductivityInsight]:
        rate = self.context_switches_per_hour(activities)
        if rate <= HIGH_SWITCH_RATE:
            return []
        return [ProductivityInsight(
            id=f"high_switching_{now}",
            type="distraction_pattern",
            title="High Context Switching",
            description=f"You're switching between apps {rate:.1f} times per hour. Consider batching similar tasks.",
            actionable=True,
            priority="medium",
            timestamp=now
        )]

    @staticmethod
    def consistent_days(trends: Sequence[ProductivityTrend]) -> int:
        """Days at or above 0.6 productivity, counted back from the latest"""
        days = 0
        for trend in reversed(trends):
            if trend.productivity_score < CONSISTENT_DAY_SCORE:
                break
            days += 1
        return days

    @staticmethod
    def efficiency_improvement(trends: Sequence[ProductivityTrend]) -> float:
        """Mean productivity of the last 3 days minus the 3 before them"""
        recent = trends[-3:]
        previous = trends[-6:-3]
        if not previous:
            return 0.0
        return _mean([t.productivity_score for t in recent]) - _mean([t.productivity_score for t in previous])

    @staticmethod
    def productivity_decline(trends: Sequence[ProductivityTrend]) -> float:
        """Baseline (up to 4 days before the last 3) mean minus the last-3-day mean"""
        days = WARNING_THRESHOLDS["declining_productivity"]["days"]
        if len(trends) < days:
            return 0.0
        recent = trends[-days:]
        baseline = trends[-7:-days]
        if not baseline:
            return 0.0
        decline = _mean([t.productivity_score for t in baseline]) - _mean([t.productivity_score for t in recent])
        return max(0.0, decline)

    def context_switches_per_hour(self, activities: Sequence[ActivityRecord]) -> float:
        hours = _span_hours(activities)
        if hours <= 0:
            return 0.0
        return self.analytics.detect_context_switches(activities) / hours

    @staticmethod
    def average_daily_hours(activities: Sequence[ActivityRecord]) -> float:
        if not activities:
            return 0.0
        total = sum(a.duration for a in activities)
        days = max(1.0, (activities[-1].timestamp - activities[0].timestamp) / DAY_MS)
        return total / HOUR_MS / days

    @staticmethod
    def consecutive_overwork_days(trends: Sequence[ProductivityTrend]) -> int:
        limit = WARNING_THRESHOLDS["burnout_risk"]["hours_per_day"] * HOUR_MS
        days = 0
        for trend in reversed(trends):
            if trend.total_active_time <= limit:
                break
            days += 1
        return days

    @staticmethod
    def poor_focus_days(trends: Sequence[ProductivityTrend]) -> int:
        threshold = WARNING_THRESHOLDS["poor_focus"]["threshold"]
        return sum(1 for t in trends[-7:] if t.focus_score < threshold)

    @staticmethod
    def peak_focus_hours(activities: Sequence[ActivityRecord]) -> List[str]:
        """Top 3 hours by summed recorded focus score, as "h:00-h+1:00" labels"""
        hourly: Dict[int, float] = {}
        for activity in activities:
            hour = local_hour(activity.timestamp)
            hourly[hour] = hourly.get(hour, 0.0) + (activity.focus_score or 0)
        ranked: List[Tuple[int, float]] = sorted(hourly.items(), key=lambda item: item[1], reverse=True)
        return [f"{hour}:00-{hour + 1}:00" for hour, _ in ranked[:3]]

    @staticmethod
    def trend_direction(trends: Sequence[ProductivityTrend]) -> str:
        if len(trends) < 2:
            return "stable"
        first = trends[0].productivity_score
        last = trends[-1].productivity_score
        if first == 0:
            return "improving" if last > 0 else "stable"
        change = (last - first) / first
        if change > 0.1:
            return "improving"
        if change < -0.1:
            return "declining"
        return "stable"
