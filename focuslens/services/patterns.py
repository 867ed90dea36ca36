"""Recurring work patterns, habits, productivity cycles and switching habits"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from focuslens.models.activity import ActivityRecord
from focuslens.models.focus import ContextSwitch
from focuslens.models.metrics import WorkPattern
from focuslens.models.patterns import (
    ContextSwitchPattern, CycleType, PatternImpact, ProductivityCycle, SwitchPatternImpact,
    SwitchPatternKind, WorkHabit
)
from focuslens.models.session import BreakPattern, FocusSession
from focuslens.services.clock import HOUR_MS, MINUTE_MS, Clock, local_date, local_hour, local_weekday, system_clock
from focuslens.services.focus import AdvancedFocusDetector

logger = logging.getLogger(__name__)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

Gap = Tuple[int, int, int]  # (start, end, duration)

def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0

def _average_focus(activities: Sequence[ActivityRecord]) -> float:
    return _mean([a.focus_score or 0 for a in activities])

def _impact(productivity: float) -> PatternImpact:
    if productivity > 0.7:
        return "positive"
    if productivity < 0.3:
        return "negative"
    return "neutral"

def _consecutive_runs(hours: Sequence[int]) -> List[List[int]]:
    runs: List[List[int]] = []
    for hour in hours:
        if runs and hour == runs[-1][-1] + 1:
            runs[-1].append(hour)
        else:
            runs.append([hour])
    return runs

class WorkPatternAnalyzer:
    """Looks for repeated structure in a chronological activity list.

    Every method is a pure function of its input and the clock. Productivity
    here means the recorded per-activity focus score, 0 when missing.
    Patterns, habits and cycles below ``MIN_CONFIDENCE`` are dropped.
    """

    MIN_OCCURRENCES = 3
    MIN_CONFIDENCE = 0.6
    FOCUS_BLOCK_MIN_DURATION = 900000  # 15 minutes
    SUSTAINED_GAP = 300000  # 5 minutes
    BREAK_THRESHOLD = 300000  # 5 minutes
    SHORT_BREAK_LIMIT = 900000  # 15 minutes

    def __init__(self, focus_detector: Optional[AdvancedFocusDetector] = None, clock: Clock = system_clock):
        self.focus_detector = focus_detector or AdvancedFocusDetector()
        self.clock = clock

    def identify_recurring_work_patterns(self, activities: Sequence[ActivityRecord]) -> List[WorkPattern]:
        """Weekday, weekly trend, heavy app usage and peak hour patterns"""
        now = self.clock()
        slots: Dict[Tuple[int, int], List[ActivityRecord]] = {}
        for activity in activities:
            slots.setdefault((local_weekday(activity.timestamp), local_hour(activity.timestamp)), []).append(activity)

        patterns = (
            self._weekday_patterns(slots, now)
            + self._weekly_trend(slots, now)
            + self._app_usage_patterns(activities, now)
            + self._peak_hour_patterns(activities, now)
        )
        return [p for p in patterns if p.confidence >= self.MIN_CONFIDENCE]

    def _weekday_patterns(self, slots: Dict[Tuple[int, int], List[ActivityRecord]], now: int) -> List[WorkPattern]:
        by_day: Dict[int, List[ActivityRecord]] = {}
        for (weekday, _), slot_activities in slots.items():
            by_day.setdefault(weekday, []).extend(slot_activities)

        patterns = []
        for weekday, day_activities in by_day.items():
            if len(day_activities) < self.MIN_OCCURRENCES:
                continue
            hours = [local_hour(a.timestamp) for a in day_activities]
            patterns.append(WorkPattern(
                id=f"daily_pattern_{weekday}_{now}",
                type="daily",
                name=f"Daily Pattern - {DAY_NAMES[weekday]}",
                description=f"Consistent activity on {DAY_NAMES[weekday]} with {len(day_activities)} activities",
                confidence=min(0.9, len(day_activities) / 10),
                frequency=len(day_activities),
                start_hour=min(hours),
                end_hour=max(hours) + 1,
                associated_apps=list(dict.fromkeys(a.app_name for a in day_activities)),
                productivity_impact=_impact(_average_focus(day_activities)),
                detected_at=now,
                last_seen=now
            ))
        return patterns

    def _weekly_trend(self, slots: Dict[Tuple[int, int], List[ActivityRecord]], now: int) -> List[WorkPattern]:
        """Relative change between the first and last observed weekday-hour slot"""
        averages = [_average_focus(slot_activities) for slot_activities in slots.values()]
        if len(averages) < 2:
            return []

        trend = (averages[-1] - averages[0]) / averages[0] if averages[0] else 0.0
        if trend > 0.1:
            direction, impact = "improving", "positive"
        elif trend < -0.1:
            direction, impact = "declining", "negative"
        else:
            direction, impact = "stable", "neutral"

        return [WorkPattern(
            id=f"weekly_trend_{now}",
            type="weekly",
            name="Weekly Productivity Trend",
            description=f"Weekly productivity trend: {direction}",
            confidence=min(0.9, len(averages) / 4),
            frequency=len(averages),
            start_hour=0,
            end_hour=24,
            productivity_impact=impact,
            detected_at=now,
            last_seen=now
        )]

    def _app_usage_patterns(self, activities: Sequence[ActivityRecord], now: int) -> List[WorkPattern]:
        by_app: Dict[str, List[ActivityRecord]] = {}
        for activity in activities:
            by_app.setdefault(activity.app_name, []).append(activity)

        heaviest = sorted(by_app.items(), key=lambda item: sum(a.duration for a in item[1]), reverse=True)[:5]
        patterns = []
        for app_name, app_activities in heaviest:
            if len(app_activities) < self.MIN_OCCURRENCES:
                continue
            hours = [local_hour(a.timestamp) for a in app_activities]
            patterns.append(WorkPattern(
                id=f"app_usage_{app_name}_{now}",
                type="daily",
                name=f"Heavy App Usage - {app_name}",
                description=f"Heavy usage of {app_name}",
                confidence=min(0.9, len(app_activities) / 20),
                frequency=len(app_activities),
                start_hour=min(hours),
                end_hour=max(hours) + 1,
                associated_apps=[app_name],
                productivity_impact=_impact(_average_focus(app_activities)),
                detected_at=now,
                last_seen=now
            ))
        return patterns

    def _peak_hour_patterns(self, activities: Sequence[ActivityRecord], now: int) -> List[WorkPattern]:
        peak_hours = [hour for hour, score in self._hourly_productivity(activities).items() if score > 0.7]
        if not peak_hours:
            return []
        return [WorkPattern(
            id=f"productivity_peak_{now}",
            type="daily",
            name="Peak Productivity Hours",
            description=f"Peak productivity during hours: {', '.join(str(h) for h in peak_hours)}",
            confidence=0.8,
            frequency=len(peak_hours),
            start_hour=min(peak_hours),
            end_hour=max(peak_hours) + 1,
            productivity_impact="positive",
            detected_at=now,
            last_seen=now
        )]

    def detect_focus_blocks(self, activities: Sequence[ActivityRecord]) -> List[FocusSession]:
        """Focus sessions of 15+ minutes, then merged blocks for same-app neighbours"""
        blocks = [
            s for s in self.focus_detector.identify_focus_sessions(activities)
            if s.duration >= self.FOCUS_BLOCK_MIN_DURATION
        ]

        sustained = []
        for current, following in zip(blocks, blocks[1:]):
            if following.start_time - current.end_time <= self.SUSTAINED_GAP and current.app_name == following.app_name:
                sustained.append(FocusSession(
                    start_time=current.start_time,
                    end_time=following.end_time,
                    duration=following.end_time - current.start_time,
                    app_name=current.app_name,
                    category=current.category,
                    interruptions=current.interruptions + following.interruptions,
                    focus_score=(current.focus_score + following.focus_score) / 2,
                    keystrokes=current.keystrokes + following.keystrokes,
                    mouse_clicks=current.mouse_clicks + following.mouse_clicks
                ))
        return blocks + sustained

    def analyze_break_patterns(self, activities: Sequence[ActivityRecord]) -> List[BreakPattern]:
        """Summary patterns over gaps of 5+ minutes.

        One ``short`` entry per busy break hour (top three with at least three
        breaks, zero duration), one ``micro`` entry with the mean length of
        breaks under 15 minutes, and one ``short`` entry whose duration is the
        mean work time between breaks.
        """
        gaps = self._gaps(activities)
        now = self.clock()
        patterns = []

        hourly: Dict[int, int] = {}
        for start, _, _ in gaps:
            hourly[local_hour(start)] = hourly.get(local_hour(start), 0) + 1
        busy_hours = sorted(
            (hour for hour, count in hourly.items() if count >= self.MIN_OCCURRENCES),
            key=lambda hour: hourly[hour],
            reverse=True
        )[:3]
        patterns.extend(BreakPattern(now, 0, "short", "", "") for _ in busy_hours)

        short = [duration for _, _, duration in gaps if duration < self.SHORT_BREAK_LIMIT]
        if len(short) >= self.MIN_OCCURRENCES:
            patterns.append(BreakPattern(now, int(_mean(short)), "micro", "", ""))

        if len(gaps) >= self.MIN_OCCURRENCES:
            patterns.append(BreakPattern(now, int(self._mean_interval(gaps)), "short", "", ""))
        return patterns

    def find_work_habits(self, activities: Sequence[ActivityRecord]) -> List[WorkHabit]:
        now = self.clock()
        habits = (
            self._app_usage_habits(activities, now)
            + self._time_preference_habits(activities, now)
            + self._break_timing_habits(activities, now)
            + self._focus_duration_habits(activities, now)
            + self._multitasking_habits(activities, now)
        )
        return [h for h in habits if h.confidence >= self.MIN_CONFIDENCE]

    def _app_usage_habits(self, activities: Sequence[ActivityRecord], now: int) -> List[WorkHabit]:
        by_app: Dict[str, List[ActivityRecord]] = {}
        for activity in activities:
            by_app.setdefault(activity.app_name, []).append(activity)

        habits = []
        for app_name, app_activities in by_app.items():
            if len(app_activities) < self.MIN_OCCURRENCES:
                continue
            productivity = _average_focus(app_activities)
            hours = sum(a.duration for a in app_activities) / HOUR_MS
            habits.append(WorkHabit(
                id=f"app_habit_{app_name}_{now}",
                type="app_usage",
                pattern=f"Regular use of {app_name}",
                frequency=len(app_activities),
                confidence=min(0.9, len(app_activities) / 20),
                description=f"You frequently use {app_name} for {hours:.1f} hours total",
                impact=_impact(productivity),
                recommendation=f"Consider limiting time spent on {app_name}" if productivity < 0.3 else None,
                detected_at=now
            ))
        return habits

    def _time_preference_habits(self, activities: Sequence[ActivityRecord], now: int) -> List[WorkHabit]:
        peak_hours = sorted(h for h, score in self._hourly_productivity(activities).items() if score > 0.6)
        if len(peak_hours) < 2:
            return []
        listed = ", ".join(str(h) for h in peak_hours)
        return [WorkHabit(
            id=f"time_preference_{now}",
            type="time_preference",
            pattern=f"Productive during {peak_hours[0]}:00-{peak_hours[-1]}:00",
            frequency=len(peak_hours),
            confidence=0.8,
            description=f"You are most productive during {listed} o'clock hours",
            impact="positive",
            recommendation=f"Schedule important tasks during your peak hours: {listed}",
            detected_at=now
        )]

    def _break_timing_habits(self, activities: Sequence[ActivityRecord], now: int) -> List[WorkHabit]:
        gaps = self._gaps(activities)
        if len(gaps) < self.MIN_OCCURRENCES:
            return []

        hours = self._mean_interval(gaps) / HOUR_MS
        impact: PatternImpact = "positive"
        recommendation = None
        if hours > 3:
            impact, recommendation = "negative", "Consider taking more frequent breaks"
        elif hours < 1:
            impact, recommendation = "negative", "Your breaks might be too frequent"

        return [WorkHabit(
            id=f"break_timing_{now}",
            type="break_timing",
            pattern=f"Takes breaks every {hours:.1f} hours",
            frequency=len(gaps),
            confidence=min(0.9, len(gaps) / 10),
            description=f"You typically take breaks every {hours:.1f} hours",
            impact=impact,
            recommendation=recommendation,
            detected_at=now
        )]

    def _focus_duration_habits(self, activities: Sequence[ActivityRecord], now: int) -> List[WorkHabit]:
        sessions = self.focus_detector.identify_focus_sessions(activities)
        if len(sessions) < self.MIN_OCCURRENCES:
            return []

        minutes = _mean([s.duration for s in sessions]) / MINUTE_MS
        impact: PatternImpact = "neutral"
        if minutes > 45:
            impact = "positive"
        elif minutes < 15:
            impact = "negative"

        return [WorkHabit(
            id=f"focus_duration_{now}",
            type="focus_duration",
            pattern=f"Average focus session: {minutes:.1f} minutes",
            frequency=len(sessions),
            confidence=min(0.9, len(sessions) / 10),
            description=f"Your average focus session lasts {minutes:.1f} minutes",
            impact=impact,
            recommendation="Try to extend your focus sessions to at least 25 minutes" if minutes < 15 else None,
            detected_at=now
        )]

    def _multitasking_habits(self, activities: Sequence[ActivityRecord], now: int) -> List[WorkHabit]:
        if not activities:
            return []

        switches = self.focus_detector.detect_context_switches(activities)
        span_hours = (activities[-1].timestamp - activities[0].timestamp) / HOUR_MS
        rate = len(switches) / span_hours if span_hours > 0 else 0.0
        impact: PatternImpact = "neutral"
        if rate > 30:
            impact = "negative"
        elif rate < 10:
            impact = "positive"

        return [WorkHabit(
            id=f"multitasking_{now}",
            type="multitasking",
            pattern=f"{rate:.1f} context switches per hour",
            frequency=len(switches),
            confidence=0.8,
            description=f"You switch between applications {rate:.1f} times per hour",
            impact=impact,
            recommendation="Try to reduce context switching by batching similar tasks" if rate > 30 else None,
            detected_at=now
        )]

    def detect_productivity_cycles(self, activities: Sequence[ActivityRecord]) -> List[ProductivityCycle]:
        """Runs of consecutive hours banded as peak (>0.7), low (<0.3) or moderate"""
        hourly = self._hourly_productivity(activities)
        days_by_hour: Dict[int, set] = {}
        for activity in activities:
            days_by_hour.setdefault(local_hour(activity.timestamp), set()).add(local_date(activity.timestamp))

        hours = sorted(hourly)
        bands: List[Tuple[CycleType, List[int]]] = [
            ("peak", [h for h in hours if hourly[h] > 0.7]),
            ("low", [h for h in hours if hourly[h] < 0.3]),
            ("moderate", [h for h in hours if 0.3 <= hourly[h] <= 0.7]),
        ]

        now = self.clock()
        cycles = []
        for cycle_type, band_hours in bands:
            for run in _consecutive_runs(band_hours):
                days = set().union(*(days_by_hour[h] for h in run))
                cycles.append(ProductivityCycle(
                    id=f"cycle_{cycle_type}_{run[0]}_{now}",
                    start_hour=run[0],
                    end_hour=run[-1],
                    type=cycle_type,
                    average_productivity=_mean([hourly[h] for h in run]),
                    consistency=0.8,
                    days_observed=len(days),
                    confidence=0.8
                ))
        return [c for c in cycles if c.confidence >= self.MIN_CONFIDENCE]

    def analyze_context_switching_patterns(self, activities: Sequence[ActivityRecord]) -> List[ContextSwitchPattern]:
        """App-to-app switches seen at least three times"""
        by_pair: Dict[Tuple[str, str], List[ContextSwitch]] = {}
        for switch in self.focus_detector.detect_context_switches(activities):
            by_pair.setdefault((switch.from_app, switch.to_app), []).append(switch)

        now = self.clock()
        patterns = []
        for (from_app, to_app), switches in by_pair.items():
            if len(switches) < self.MIN_OCCURRENCES:
                continue
            hours = [local_hour(s.timestamp) for s in switches]
            patterns.append(ContextSwitchPattern(
                id=f"switch_{from_app}_{to_app}_{now}",
                from_app=from_app,
                to_app=to_app,
                frequency=len(switches),
                average_duration=_mean([s.duration for s in switches]),
                time_of_day=hours,
                impact=self._switch_pattern_impact(switches),
                pattern=self._switch_pattern_kind(switches, hours)
            ))
        logger.debug(f"Found {len(patterns)} recurring context switch patterns")
        return patterns

    @staticmethod
    def _switch_pattern_impact(switches: Sequence[ContextSwitch]) -> SwitchPatternImpact:
        average_gap = _mean([s.duration for s in switches])
        if average_gap < 10000:
            return "disruptive"
        if average_gap > 300000:
            return "beneficial"
        return "neutral"

    @staticmethod
    def _switch_pattern_kind(switches: Sequence[ContextSwitch], hours: Sequence[int]) -> SwitchPatternKind:
        if len(set(hours)) <= 2:
            return "habitual"
        if len(switches) > 10:
            return "reactive"
        return "planned"

    def _gaps(self, activities: Sequence[ActivityRecord]) -> List[Gap]:
        gaps = []
        for previous, current in zip(activities, activities[1:]):
            gap = current.timestamp - previous.end_time
            if gap >= self.BREAK_THRESHOLD:
                gaps.append((previous.end_time, current.timestamp, gap))
        return gaps

    @staticmethod
    def _mean_interval(gaps: Sequence[Gap]) -> float:
        """Mean time from the end of one break to the start of the next"""
        return _mean([gaps[i][0] - gaps[i - 1][1] for i in range(1, len(gaps))])

    @staticmethod
    def _hourly_productivity(activities: Sequence[ActivityRecord]) -> Dict[int, float]:
        by_hour: Dict[int, List[ActivityRecord]] = {}
        for activity in activities:
            by_hour.setdefault(local_hour(activity.timestamp), []).append(activity)
        return {hour: _average_focus(hour_activities) for hour, hour_activities in by_hour.items()}
