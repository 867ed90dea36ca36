from dataclasses import dataclass, field
from typing import List, Literal, Optional

ImpactLevel = Literal["low", "medium", "high"]
ResourceCategory = Literal["light", "moderate", "heavy", "extreme"]

@dataclass
class SystemMetrics:
    timestamp: int
    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    disk_usage: float = 0.0
    network_activity: float = 0.0  # bytes per second
    battery_level: Optional[float] = None
    is_charging: Optional[bool] = None

@dataclass
class ResourceCorrelation:
    memory_impact: ImpactLevel
    cpu_impact: ImpactLevel
    performance_score: float
    resource_efficiency: float
    recommendations: List[str] = field(default_factory=list)

@dataclass
class ResourceIntensiveApp:
    app_name: str
    avg_cpu_usage: float
    avg_memory_usage: float
    total_duration: int
    impact_score: float
    category: ResourceCategory

@dataclass
class ProductivityMetrics:
    date: str  # YYYY-MM-DD
    total_active_time: int = 0
    productive_time: int = 0
    neutral_time: int = 0
    distracting_time: int = 0
    focus_score: float = 0.0
    context_switches: int = 0
    peak_productivity_hour: int = 9
    break_frequency: float = 0.0
    average_session_duration: float = 0.0

@dataclass
class ProductivityTrend:
    date: str
    productivity_score: float
    focus_score: float
    efficiency: float
    top_productive_apps: List[str] = field(default_factory=list)
    top_distracting_apps: List[str] = field(default_factory=list)
    peak_hours: List[int] = field(default_factory=list)
    total_active_time: int = 0

@dataclass
class WorkHours:
    start: int
    end: int

@dataclass
class ProductivityOptimization:
    recommendations: List[str]
    optimal_work_hours: WorkHours
    suggested_break_interval: int  # minutes
    focus_improvements: List[str] = field(default_factory=list)
    resource_optimizations: List[str] = field(default_factory=list)

@dataclass
class WorkPattern:
    id: str
    type: Literal["daily", "weekly", "project_based"]
    name: str
    description: str
    confidence: float
    frequency: int
    start_hour: int
    end_hour: int
    associated_apps: List[str] = field(default_factory=list)
    productivity_impact: Literal["positive", "negative", "neutral"] = "neutral"
    detected_at: int = 0
    last_seen: int = 0
