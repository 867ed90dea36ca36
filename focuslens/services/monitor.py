"""Correlate system resource usage with productivity"""
import asyncio
import logging
from typing import Callable, Dict, List, Optional, Sequence

import psutil

from focuslens.config.settings import settings
from focuslens.models.activity import ActivityRecord
from focuslens.models.metrics import (
    ImpactLevel, ResourceCategory, ResourceCorrelation, ResourceIntensiveApp, SystemMetrics
)
from focuslens.services.clock import HOUR_MS, Clock, system_clock

logger = logging.getLogger(__name__)

class SystemResourceMonitor:
    """Samples CPU/memory/disk/network via psutil and scores resource impact"""

    CPU_WARNING_THRESHOLD = 80
    MEMORY_WARNING_THRESHOLD = 85
    CPU_PRIMING_INTERVAL = 0.1  # seconds

    def __init__(self, db=None, clock: Clock = system_clock, interval: Optional[float] = None):
        self.db = db
        self.clock = clock
        self.interval = interval if interval is not None else settings.MONITORING_INTERVAL_SECONDS
        self._monitor_task: Optional[asyncio.Task] = None
        self._last_network: Optional[tuple] = None  # (timestamp ms, total bytes)
        self._cpu_primed = False

    async def get_memory_usage(self) -> float:
        try:
            memory = await asyncio.to_thread(psutil.virtual_memory)
            return float(memory.percent)
        except Exception as e:
            logger.warning(f"Failed to get memory usage: {e}")
            return 0.0

    async def get_system_metrics(self) -> SystemMetrics:
        """Current system snapshot; zeroed metrics if collection fails"""
        try:
            return await asyncio.to_thread(self._collect_metrics)
        except Exception as e:
            logger.warning(f"Failed to get system metrics: {e}")
            return SystemMetrics(timestamp=self.clock())

    def _collect_metrics(self) -> SystemMetrics:
        now = self.clock()
        # A non-blocking first call has no baseline and always reads 0.0
        cpu = psutil.cpu_percent(interval=None if self._cpu_primed else self.CPU_PRIMING_INTERVAL)
        self._cpu_primed = True
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage("/")

        network = psutil.net_io_counters()
        total_bytes = network.bytes_sent + network.bytes_recv
        network_activity = 0.0
        if self._last_network and now > self._last_network[0]:
            elapsed = (now - self._last_network[0]) / 1000
            network_activity = max(0.0, (total_bytes - self._last_network[1]) / elapsed)
        self._last_network = (now, total_bytes)

        battery = psutil.sensors_battery() if hasattr(psutil, "sensors_battery") else None
        return SystemMetrics(
            timestamp=now,
            cpu_usage=float(cpu),
            memory_usage=float(memory.percent),
            disk_usage=float(disk.percent),
            network_activity=network_activity,
            battery_level=float(battery.percent) if battery else None,
            is_charging=battery.power_plugged if battery else None
        )

    def correlate_resources_with_productivity(
        self,
        activity: ActivityRecord,
        metrics: SystemMetrics
    ) -> ResourceCorrelation:
        return ResourceCorrelation(
            memory_impact=self._memory_impact(metrics.memory_usage),
            cpu_impact=self._cpu_impact(activity.cpu_usage or 0),
            performance_score=self.calculate_performance_score(activity, metrics),
            resource_efficiency=self._resource_efficiency(activity, metrics),
            recommendations=self._recommendations(activity, metrics)
        )

    def calculate_performance_score(self, activity: ActivityRecord, metrics: SystemMetrics) -> float:
        """1.0 minus resource pressure penalties, plus a bonus for long efficient work"""
        cpu = activity.cpu_usage or 0
        score = 1.0

        if metrics.memory_usage > 80:
            score -= 0.3
        elif metrics.memory_usage > 60:
            score -= 0.1

        if cpu > 80:
            score -= 0.3
        elif cpu > 60:
            score -= 0.1

        if metrics.disk_usage > 90:
            score -= 0.2

        if activity.duration > 300000 and cpu < 50 and metrics.memory_usage < 60:
            score += 0.1

        return max(0.0, min(1.0, score))

    def detect_resource_intensive_apps(self, activities: Sequence[ActivityRecord]) -> List[ResourceIntensiveApp]:
        """Per-app average usage and impact, highest impact first"""
        totals: Dict[str, Dict[str, float]] = {}
        for activity in activities:
            app = totals.setdefault(activity.app_name, {"cpu": 0.0, "memory": 0.0, "duration": 0, "count": 0})
            app["cpu"] += activity.cpu_usage or 0
            app["memory"] += activity.memory_usage or 0
            app["duration"] += activity.duration
            app["count"] += 1

        apps = []
        for app_name, app in totals.items():
            avg_cpu = app["cpu"] / app["count"]
            avg_memory = app["memory"] / app["count"]
            apps.append(ResourceIntensiveApp(
                app_name=app_name,
                avg_cpu_usage=avg_cpu,
                avg_memory_usage=avg_memory,
                total_duration=int(app["duration"]),
                impact_score=self._impact_score(avg_cpu, avg_memory, app["duration"]),
                category=self._resource_category(avg_cpu, avg_memory)
            ))
        return sorted(apps, key=lambda a: a.impact_score, reverse=True)

    def start_monitoring(
        self,
        on_sample: Optional[Callable[[SystemMetrics], None]] = None,
        samples: Optional[int] = None
    ) -> asyncio.Task:
        """Start polling system metrics in the background, replacing any running poller.

        ``on_sample`` receives every sample; the task finishes after ``samples``
        samples, or runs until stopped when it is None.
        """
        self.stop_monitoring()
        self._monitor_task = asyncio.create_task(self._monitor_loop(on_sample, samples))
        logger.info(f"System monitoring started ({self.interval}s interval)")
        return self._monitor_task

    def stop_monitoring(self) -> None:
        if self._monitor_task:
            self._monitor_task.cancel()
            self._monitor_task = None
            logger.info("System monitoring stopped")

    @property
    def is_monitoring(self) -> bool:
        return self._monitor_task is not None and not self._monitor_task.done()

    async def _monitor_loop(
        self,
        on_sample: Optional[Callable[[SystemMetrics], None]],
        samples: Optional[int]
    ) -> None:
        taken = 0
        while samples is None or taken < samples:
            if taken:
                await asyncio.sleep(self.interval)
            metrics = await self.poll_once()
            if on_sample:
                on_sample(metrics)
            taken += 1

    async def poll_once(self) -> SystemMetrics:
        """Take, persist and check one metrics sample"""
        metrics = await self.get_system_metrics()
        if self.db is not None:
            try:
                await self.db.save_system_metrics(metrics)
            except Exception as e:
                logger.error(f"Error during system monitoring: {e}")
        self._check_thresholds(metrics)
        return metrics

    def _check_thresholds(self, metrics: SystemMetrics) -> None:
        if metrics.cpu_usage > self.CPU_WARNING_THRESHOLD:
            logger.warning(f"High CPU usage detected: {metrics.cpu_usage:.1f}%")
        if metrics.memory_usage > self.MEMORY_WARNING_THRESHOLD:
            logger.warning(f"High memory usage detected: {metrics.memory_usage:.1f}%")

    @staticmethod
    def _memory_impact(memory_usage: float) -> ImpactLevel:
        if memory_usage < 50:
            return "low"
        if memory_usage < 80:
            return "medium"
        return "high"

    @staticmethod
    def _cpu_impact(cpu_usage: float) -> ImpactLevel:
        if cpu_usage < 30:
            return "low"
        if cpu_usage < 70:
            return "medium"
        return "high"

    @staticmethod
    def _resource_efficiency(activity: ActivityRecord, metrics: SystemMetrics) -> float:
        usage = ((activity.cpu_usage or 0) + metrics.memory_usage) / 2
        if usage == 0:
            return 1.0
        return min(1.0, (activity.duration / 1000) / (usage * 100))

    @staticmethod
    def _recommendations(activity: ActivityRecord, metrics: SystemMetrics) -> List[str]:
        recommendations = []
        if metrics.memory_usage > 85:
            recommendations.append("High memory usage detected. Consider closing unused applications.")
        if (activity.cpu_usage or 0) > 80:
            recommendations.append(
                f"{activity.app_name} is using high CPU. Consider optimizing or updating the application."
            )
        if metrics.disk_usage > 90:
            recommendations.append("Disk space is running low. Consider cleaning up files or expanding storage.")
        if not recommendations:
            recommendations.append("System performance is optimal.")
        return recommendations

    @staticmethod
    def _impact_score(avg_cpu: float, avg_memory: float, total_duration: float) -> float:
        duration_factor = min(total_duration / HOUR_MS, 8) / 8
        return avg_cpu / 100 * 0.4 + avg_memory / 100 * 0.4 + duration_factor * 0.2

    @staticmethod
    def _resource_category(avg_cpu: float, avg_memory: float) -> ResourceCategory:
        combined = (avg_cpu + avg_memory) / 2
        if combined < 25:
            return "light"
        if combined < 50:
            return "moderate"
        if combined < 75:
            return "heavy"
        return "extreme"
