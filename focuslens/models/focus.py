from dataclasses import dataclass, field
from typing import Dict, List, Literal

SwitchType = Literal["quick", "normal", "extended"]
SwitchImpact = Literal["low", "medium", "high"]

@dataclass
class ContextSwitch:
    timestamp: int
    from_app: str
    to_app: str
    duration: int  # gap between the two activities
    switch_type: SwitchType
    impact: SwitchImpact

@dataclass
class FocusPattern:
    average_focus_session_duration: float = 0.0
    focus_sessions_per_hour: float = 0.0
    most_focused_time_of_day: int = 9
    least_focused_time_of_day: int = 15
    focus_consistency: float = 0.0
    interruption_frequency: float = 0.0
    recovery_time: float = 0.0

@dataclass
class RecoveryPattern:
    interruption_app: str
    average_recovery_time: float
    success_rate: float
    common_recovery_apps: List[str] = field(default_factory=list)

@dataclass
class InterruptionAnalysis:
    total_interruptions: int = 0
    average_interruption_duration: float = 0.0
    most_disruptive_apps: List[str] = field(default_factory=list)
    interruptions_by_hour: Dict[int, int] = field(default_factory=dict)
    recovery_patterns: List[RecoveryPattern] = field(default_factory=list)
