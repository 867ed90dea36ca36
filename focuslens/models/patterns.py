from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

HabitType = Literal["app_usage", "time_preference", "break_timing", "focus_duration", "multitasking"]
PatternImpact = Literal["positive", "negative", "neutral"]
CycleType = Literal["peak", "moderate", "low"]
SwitchPatternImpact = Literal["disruptive", "neutral", "beneficial"]
SwitchPatternKind = Literal["habitual", "reactive", "planned"]
DistractionSeverity = Literal["low", "medium", "high"]
DistractionTimeframe = Literal["day", "week", "month"]

@dataclass
class WorkHabit:
    id: str
    type: HabitType
    pattern: str
    frequency: int
    confidence: float
    description: str
    impact: PatternImpact
    recommendation: Optional[str] = None
    detected_at: int = 0

@dataclass
class ProductivityCycle:
    id: str
    start_hour: int
    end_hour: int  # inclusive
    type: CycleType
    average_productivity: float
    consistency: float
    days_observed: int
    confidence: float

@dataclass
class ContextSwitchPattern:
    id: str
    from_app: str
    to_app: str
    frequency: int
    average_duration: float  # mean gap between the two apps
    time_of_day: List[int] = field(default_factory=list)
    impact: SwitchPatternImpact = "neutral"
    pattern: SwitchPatternKind = "planned"

@dataclass
class DistractionEvent:
    timestamp: int  # end of the distracting stretch
    app_name: str
    duration: int
    severity: DistractionSeverity
    context: str = ""

@dataclass
class AppDistraction:
    app_name: str
    count: int
    total_time: int

@dataclass
class DistractionStats:
    total_events: int = 0
    total_distraction_time: int = 0
    top_distracting_apps: List[AppDistraction] = field(default_factory=list)
    average_distraction_duration: float = 0.0
    severity_breakdown: Dict[str, int] = field(
        default_factory=lambda: {"low": 0, "medium": 0, "high": 0}
    )
