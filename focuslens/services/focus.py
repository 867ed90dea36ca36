"""Detect focus sessions, context switches and interruptions in activity streams"""
import logging
import math
from collections import Counter
from typing import Dict, List, Sequence

from focuslens.models.activity import ActivityRecord
from focuslens.models.focus import (
    ContextSwitch, FocusPattern, InterruptionAnalysis, RecoveryPattern, SwitchImpact, SwitchType
)
from focuslens.models.session import FocusSession
from focuslens.services.clock import HOUR_MS, local_hour

logger = logging.getLogger(__name__)

def coefficient_of_variation(values: Sequence[float]) -> float:
    """stddev / mean; 1 for an empty list, 0 when the mean is 0"""
    if not values:
        return 1.0
    mean = sum(values) / len(values)
    if mean == 0:
        return 0.0
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance) / mean

def _gap(previous: ActivityRecord, current: ActivityRecord) -> int:
    return current.timestamp - previous.end_time

class AdvancedFocusDetector:
    """Scores sustained single-app engagement over a chronological activity list"""

    FOCUS_THRESHOLD = 300000  # 5 minutes
    QUICK_SWITCH_THRESHOLD = 10000  # 10 seconds
    EXTENDED_SWITCH_THRESHOLD = 180000  # 3 minutes
    INTERRUPTION_THRESHOLD = 30000  # 30 seconds

    def calculate_focus_score(self, activities: Sequence[ActivityRecord]) -> float:
        """Overall focus score in [0, 1]; 0 for no activities"""
        if not activities:
            return 0.0

        sessions = self.identify_focus_sessions(activities)
        focused_time = sum(s.duration for s in sessions)
        total_time = sum(a.duration for a in activities)

        quick_switches = sum(
            1 for s in self.detect_context_switches(activities) if s.switch_type == "quick"
        )
        switch_penalty = min(0.5, quick_switches * 0.02)

        score = focused_time / total_time if total_time > 0 else 0.0
        score = (
            score
            - switch_penalty
            + self._consistency_bonus(activities)
            + self._depth_bonus(sessions)
        )
        return max(0.0, min(1.0, score))

    def detect_context_switches(self, activities: Sequence[ActivityRecord]) -> List[ContextSwitch]:
        """One switch per adjacent pair with differing app names"""
        switches = []
        for previous, current in zip(activities, activities[1:]):
            if previous.app_name == current.app_name:
                continue
            gap = _gap(previous, current)
            switches.append(ContextSwitch(
                timestamp=current.timestamp,
                from_app=previous.app_name,
                to_app=current.app_name,
                duration=gap,
                switch_type=self._classify_switch(gap),
                impact=self._switch_impact(previous, gap)
            ))
        return switches

    def identify_focus_sessions(self, activities: Sequence[ActivityRecord]) -> List[FocusSession]:
        """Same-app runs without a gap over 3 minutes, lasting at least 5 minutes"""
        sessions = []
        run: List[ActivityRecord] = []

        for activity in activities:
            if run and (
                run[-1].app_name != activity.app_name
                or _gap(run[-1], activity) > self.EXTENDED_SWITCH_THRESHOLD
            ):
                self._close_run(run, sessions)
                run = []
            run.append(activity)

        self._close_run(run, sessions)
        return sessions

    def analyze_focus_patterns(self, activities: Sequence[ActivityRecord]) -> FocusPattern:
        sessions = self.identify_focus_sessions(activities)
        switches = self.detect_context_switches(activities)

        total_time = sum(a.duration for a in activities)
        hours = total_time / HOUR_MS
        hourly = self._hourly_focus(activities)

        average_duration = (
            sum(s.duration for s in sessions) / len(sessions) if sessions else 0.0
        )
        consistency = 0.0
        if len(sessions) >= 2:
            consistency = max(0.0, 1 - coefficient_of_variation([s.duration for s in sessions]))

        return FocusPattern(
            average_focus_session_duration=average_duration,
            focus_sessions_per_hour=len(sessions) / hours if hours > 0 else 0.0,
            most_focused_time_of_day=self._peak_hour(hourly),
            least_focused_time_of_day=self._lowest_hour(hourly),
            focus_consistency=consistency,
            interruption_frequency=len(switches) / hours if hours > 0 else 0.0,
            recovery_time=self._average_recovery_time(activities)
        )

    def get_interruption_analysis(self, activities: Sequence[ActivityRecord]) -> InterruptionAnalysis:
        """Switches shorter than 30 seconds and how well work recovered after them"""
        interruptions = []
        for index, previous, current in self._switch_points(activities):
            gap = _gap(previous, current)
            if gap < self.INTERRUPTION_THRESHOLD:
                interruptions.append((index, gap))

        if not interruptions:
            return InterruptionAnalysis()

        destinations = Counter(activities[i].app_name for i, _ in interruptions)
        by_hour: Dict[int, int] = {}
        for i, _ in interruptions:
            hour = local_hour(activities[i].timestamp)
            by_hour[hour] = by_hour.get(hour, 0) + 1

        return InterruptionAnalysis(
            total_interruptions=len(interruptions),
            average_interruption_duration=sum(g for _, g in interruptions) / len(interruptions),
            most_disruptive_apps=[app for app, _ in destinations.most_common(5)],
            interruptions_by_hour=by_hour,
            recovery_patterns=self._recovery_patterns(activities, [i for i, _ in interruptions])
        )

    def _switch_points(self, activities: Sequence[ActivityRecord]):
        """Yield (index of the activity switched to, previous, current)"""
        for index in range(1, len(activities)):
            previous, current = activities[index - 1], activities[index]
            if previous.app_name != current.app_name:
                yield index, previous, current

    def _classify_switch(self, gap: int) -> SwitchType:
        if gap < self.QUICK_SWITCH_THRESHOLD:
            return "quick"
        if gap < self.EXTENDED_SWITCH_THRESHOLD:
            return "normal"
        return "extended"

    def _switch_impact(self, previous: ActivityRecord, gap: int) -> SwitchImpact:
        if gap < self.QUICK_SWITCH_THRESHOLD:
            return "high"
        if previous.duration > self.FOCUS_THRESHOLD:
            return "medium"
        return "low"

    def _close_run(self, run: List[ActivityRecord], sessions: List[FocusSession]) -> None:
        if not run:
            return
        session = self._build_focus_session(run)
        if session.duration >= self.FOCUS_THRESHOLD:
            sessions.append(session)

    def _build_focus_session(self, run: List[ActivityRecord]) -> FocusSession:
        start_time = run[0].timestamp
        end_time = run[-1].end_time
        return FocusSession(
            start_time=start_time,
            end_time=end_time,
            duration=end_time - start_time,
            app_name=run[0].app_name,
            category=run[0].category or "unknown",
            interruptions=self._internal_interruptions(run),
            focus_score=self._session_focus_score(run),
            keystrokes=sum(a.keystrokes or 0 for a in run),
            mouse_clicks=sum(a.mouse_clicks or 0 for a in run)
        )

    def _internal_interruptions(self, run: Sequence[ActivityRecord]) -> int:
        return sum(
            1 for previous, current in zip(run, run[1:])
            if self.INTERRUPTION_THRESHOLD < _gap(previous, current) < self.EXTENDED_SWITCH_THRESHOLD
        )

    def _session_focus_score(self, run: Sequence[ActivityRecord]) -> float:
        total = sum(a.duration for a in run)
        score = min(1.0, total / (30 * 60 * 1000))
        score -= min(0.5, self._internal_interruptions(run) * 0.1)
        score += self._input_consistency(run) * 0.2
        return max(0.0, min(1.0, score))

    def _input_consistency(self, run: Sequence[ActivityRecord]) -> float:
        """How even keystroke and click counts are across the run"""
        if len(run) < 2:
            return 0.0
        keys = coefficient_of_variation([a.keystrokes or 0 for a in run])
        clicks = coefficient_of_variation([a.mouse_clicks or 0 for a in run])
        return (max(0.0, 1 - keys) + max(0.0, 1 - clicks)) / 2

    def _consistency_bonus(self, activities: Sequence[ActivityRecord]) -> float:
        if len(activities) < 3:
            return 0.0
        cv = coefficient_of_variation([a.duration for a in activities])
        return max(0.0, (1 - cv) * 0.1)

    def _depth_bonus(self, sessions: Sequence[FocusSession]) -> float:
        long_sessions = sum(1 for s in sessions if s.duration > 1800000)
        very_long_sessions = sum(1 for s in sessions if s.duration > 3600000)
        return min(0.2, long_sessions * 0.05 + very_long_sessions * 0.1)

    def _hourly_focus(self, activities: Sequence[ActivityRecord]) -> Dict[int, float]:
        hourly: Dict[int, float] = {}
        for activity in activities:
            hour = local_hour(activity.timestamp)
            hourly[hour] = hourly.get(hour, 0.0) + min(1.0, activity.duration / self.FOCUS_THRESHOLD)
        return hourly

    def _peak_hour(self, hourly: Dict[int, float]) -> int:
        peak_hour, peak_score = 9, 0.0
        for hour, score in hourly.items():
            if score > peak_score:
                peak_hour, peak_score = hour, score
        return peak_hour

    def _lowest_hour(self, hourly: Dict[int, float]) -> int:
        lowest_hour, lowest_score = 15, math.inf
        for hour, score in hourly.items():
            if score < lowest_score:
                lowest_hour, lowest_score = hour, score
        return lowest_hour

    def _average_recovery_time(self, activities: Sequence[ActivityRecord]) -> float:
        """Mean switch gap over switches followed by a focus-length activity"""
        recoveries = []
        for index, previous, current in self._switch_points(activities):
            if index < len(activities) - 1 and activities[index + 1].duration > self.FOCUS_THRESHOLD:
                recoveries.append(_gap(previous, current))
        return sum(recoveries) / len(recoveries) if recoveries else 0.0

    def _recovery_patterns(
        self,
        activities: Sequence[ActivityRecord],
        switch_indexes: List[int]
    ) -> List[RecoveryPattern]:
        """Group interruptions by the app switched to"""
        grouped: Dict[str, Dict] = {}
        for index in switch_indexes:
            app = activities[index].app_name
            data = grouped.setdefault(app, {"times": [], "successes": 0, "total": 0, "apps": Counter()})
            data["total"] += 1

            if index < len(activities) - 1:
                following = activities[index + 1]
                if following.duration > self.FOCUS_THRESHOLD:
                    data["successes"] += 1
                    data["times"].append(following.timestamp - activities[index].timestamp)
                    data["apps"][following.app_name] += 1

        return [
            RecoveryPattern(
                interruption_app=app,
                average_recovery_time=sum(data["times"]) / len(data["times"]) if data["times"] else 0.0,
                success_rate=data["successes"] / data["total"],
                common_recovery_apps=[name for name, _ in data["apps"].most_common(3)]
            )
            for app, data in grouped.items()
        ]
