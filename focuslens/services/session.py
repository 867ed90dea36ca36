"""Segment the live activity stream into work sessions, breaks and blocks"""
import logging
from typing import Dict, List, Optional, Sequence

from focuslens.models.activity import ActivityRecord, ProductivityRating
from focuslens.models.session import (
    BlockType, BreakPattern, BreakType, EnergyLevel, FocusSession, ProductivityBlock, WorkSession
)
from focuslens.services.analytics import ProductivityAnalytics
from focuslens.services.clock import Clock, system_clock
from focuslens.services.notifier import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

class WorkSessionManager:
    """Tracks a single current session over pushed activity records.

    An idle gap of more than 5 minutes closes the current session and
    opens a new one. Sessions shorter than 10 minutes are discarded.
    """

    IDLE_THRESHOLD = 300000  # 5 minutes
    MIN_SESSION_DURATION = 600000  # 10 minutes
    BREAK_THRESHOLD = 180000  # 3 minutes
    BLOCK_DURATION = 1800000  # 30 minutes
    MIN_FOCUS_DURATION = 600000  # 10 minutes

    def __init__(
        self,
        db,
        analytics: ProductivityAnalytics,
        notifier: Optional[Notifier] = None,
        clock: Clock = system_clock
    ):
        self.db = db
        self.analytics = analytics
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock
        self.current_session: Optional[WorkSession] = None
        self.session_activities: List[ActivityRecord] = []
        self.last_activity_time = 0

    async def start_session(self) -> None:
        """Open a new session, closing any current one first"""
        if self.current_session:
            await self.end_session()

        now = self.clock()
        self.current_session = WorkSession(start_time=now, end_time=now)
        self.session_activities = []
        self.last_activity_time = now
        logger.debug("Work session started")

    async def add_activity(self, activity: ActivityRecord) -> Optional[WorkSession]:
        """Append an activity; returns the session it closed, if any"""
        if not self.current_session:
            await self.start_session()

        closed = None
        idle_gap = activity.timestamp - self.last_activity_time
        if idle_gap > self.IDLE_THRESHOLD and self.session_activities:
            logger.info(f"Idle gap of {idle_gap // 1000}s, rolling over to a new session")
            closed = await self.end_session()
            await self.start_session()

        if not self.session_activities:
            self.current_session.start_time = activity.timestamp
        self.session_activities.append(activity)
        self.last_activity_time = activity.end_time
        self.current_session.end_time = activity.end_time
        self.current_session.duration = activity.end_time - self.current_session.start_time
        return closed

    async def end_session(self) -> Optional[WorkSession]:
        """Close the current session, persisting it when long enough"""
        activities = self.session_activities
        current = self.current_session
        self.current_session = None
        self.session_activities = []

        if not current or not activities:
            return None

        duration = activities[-1].end_time - activities[0].timestamp
        if duration < self.MIN_SESSION_DURATION:
            logger.debug(f"Discarding short session ({duration // 1000}s)")
            return None

        session = self.analytics.create_work_session(activities)
        session.break_duration = sum(b.duration for b in self.detect_breaks(activities))

        await self._save("work session", self.db.save_work_session, session)
        for block in self.create_productivity_blocks(activities):
            await self._save("productivity block", self.db.save_productivity_block, block)

        focus_sessions = self.create_focus_sessions(activities)
        for focus_session in focus_sessions:
            await self._save("focus session", self.db.save_focus_session, focus_session)

        self.notifier.notify_session_ended(session)
        for focus_session in focus_sessions:
            self.notifier.notify_focus_session_completed(focus_session)

        logger.info(
            f"Session ended: {session.duration // 60000} min, "
            f"focus {session.focus_score:.2f}, dominant app {session.dominant_app}"
        )
        return session

    async def _save(self, label: str, save, record) -> None:
        try:
            await save(record)
        except Exception as e:
            logger.error(f"Failed to save {label}: {e}")

    def get_current_session(self) -> Optional[WorkSession]:
        return self.current_session

    def is_in_session(self) -> bool:
        return self.current_session is not None

    def get_current_session_duration(self) -> int:
        if not self.current_session:
            return 0
        return self.clock() - self.current_session.start_time

    def detect_breaks(self, activities: Sequence[ActivityRecord]) -> List[BreakPattern]:
        """Gaps of more than 3 minutes between consecutive activities"""
        breaks = []
        for previous, current in zip(activities, activities[1:]):
            gap = current.timestamp - previous.end_time
            if gap > self.BREAK_THRESHOLD:
                breaks.append(BreakPattern(
                    timestamp=previous.end_time,
                    duration=gap,
                    type=self._classify_break(gap),
                    before_activity=previous.app_name,
                    after_activity=current.app_name
                ))
        return breaks

    def create_productivity_blocks(self, activities: Sequence[ActivityRecord]) -> List[ProductivityBlock]:
        """Fixed 30-minute buckets from the first activity to the last activity end"""
        blocks = []
        if not activities:
            return blocks

        start_time = activities[0].timestamp
        end_time = activities[-1].end_time

        for block_start in range(start_time, end_time, self.BLOCK_DURATION):
            block_end = min(block_start + self.BLOCK_DURATION, end_time)
            in_block = [a for a in activities if block_start <= a.timestamp < block_end]
            if not in_block:
                continue

            focus_score = self.analytics.calculate_focus_score(in_block)
            switches = self.analytics.detect_context_switches(in_block)
            blocks.append(ProductivityBlock(
                id=f"block_{block_start}_{block_end}",
                start_time=block_start,
                end_time=block_end,
                duration=block_end - block_start,
                type=self._block_type(focus_score),
                focus_score=focus_score,
                dominant_activity=self._dominant_app(in_block),
                interruptions=switches,
                context_switches=switches,
                productivity_rating=self._block_rating(focus_score),
                energy_level=self.calculate_energy_level(in_block),
                quality_score=round(focus_score * 100)
            ))
        return blocks

    def create_focus_sessions(self, activities: Sequence[ActivityRecord]) -> List[FocusSession]:
        """Same-app runs lasting at least 10 minutes, with no gap splitting"""
        sessions = []
        run: List[ActivityRecord] = []
        for activity in activities:
            if run and run[-1].app_name != activity.app_name:
                self._close_focus_run(run, sessions)
                run = []
            run.append(activity)
        self._close_focus_run(run, sessions)
        return sessions

    def calculate_energy_level(self, activities: Sequence[ActivityRecord]) -> EnergyLevel:
        if not activities:
            return "low"
        count = len(activities)
        avg_cpu = sum(a.cpu_usage or 0 for a in activities) / count
        avg_keys = sum(a.keystrokes or 0 for a in activities) / count
        avg_clicks = sum(a.mouse_clicks or 0 for a in activities) / count

        intensity = avg_cpu / 100 + min(avg_keys / 100, 1) + min(avg_clicks / 50, 1)
        if intensity >= 2:
            return "high"
        if intensity >= 1:
            return "medium"
        return "low"

    def _close_focus_run(self, run: List[ActivityRecord], sessions: List[FocusSession]) -> None:
        if not run:
            return
        start_time = run[0].timestamp
        end_time = run[-1].end_time
        if end_time - start_time < self.MIN_FOCUS_DURATION:
            return
        sessions.append(FocusSession(
            start_time=start_time,
            end_time=end_time,
            duration=end_time - start_time,
            app_name=run[0].app_name,
            category=run[0].category or "unknown",
            interruptions=self.analytics.detect_context_switches(run),
            focus_score=self.analytics.calculate_focus_score(run),
            keystrokes=sum(a.keystrokes or 0 for a in run),
            mouse_clicks=sum(a.mouse_clicks or 0 for a in run)
        ))

    @staticmethod
    def _classify_break(duration: int) -> BreakType:
        if duration < 300000:
            return "micro"
        if duration < 1800000:
            return "short"
        return "long"

    @staticmethod
    def _block_type(focus_score: float) -> BlockType:
        if focus_score >= 0.7:
            return "deep_focus"
        if focus_score >= 0.3:
            return "shallow_work"
        return "distraction"

    @staticmethod
    def _block_rating(focus_score: float) -> ProductivityRating:
        if focus_score >= 0.7:
            return "productive"
        if focus_score >= 0.3:
            return "neutral"
        return "distracting"

    @staticmethod
    def _dominant_app(activities: Sequence[ActivityRecord]) -> str:
        app_times: Dict[str, int] = {}
        for activity in activities:
            app_times[activity.app_name] = app_times.get(activity.app_name, 0) + activity.duration
        return max(app_times, key=app_times.get) if app_times else "Unknown"
