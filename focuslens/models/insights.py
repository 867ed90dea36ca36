from dataclasses import dataclass, field
from typing import List, Literal

InsightPriority = Literal["critical", "high", "medium", "low"]

PRIORITY_ORDER = {"critical": 4, "high": 3, "medium": 2, "low": 1}

@dataclass
class ProductivityInsight:
    id: str
    type: str  # peak_hours, distraction_pattern, focus_improvement, break_suggestion, app_recommendation
    title: str
    description: str
    actionable: bool
    priority: InsightPriority
    timestamp: int

@dataclass
class Achievement:
    id: str
    type: str  # productivity_milestone, focus_improvement, consistency, efficiency
    title: str
    description: str
    timestamp: int
    value: float
    threshold: float
    category: Literal["daily", "weekly", "monthly"]
    badge: str = ""

@dataclass
class ProductivityWarning:
    id: str
    type: str  # declining_productivity, excessive_distraction, burnout_risk, poor_focus
    severity: InsightPriority
    title: str
    description: str
    timestamp: int
    trend: Literal["increasing", "decreasing", "stable"]
    threshold: float
    current_value: float
    recommendations: List[str] = field(default_factory=list)

@dataclass
class InsightReport:
    achievements: List[Achievement] = field(default_factory=list)
    warnings: List[ProductivityWarning] = field(default_factory=list)
    insights: List[ProductivityInsight] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
