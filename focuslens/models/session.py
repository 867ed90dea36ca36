from dataclasses import dataclass
from typing import Literal
from focuslens.models.activity import ProductivityRating

BreakType = Literal["micro", "short", "long"]
BlockType = Literal["deep_focus", "shallow_work", "distraction"]
EnergyLevel = Literal["low", "medium", "high"]

@dataclass
class WorkSession:
    start_time: int
    end_time: int
    duration: int = 0
    focus_score: float = 0.0
    productivity_rating: ProductivityRating = "neutral"
    context_switches: int = 0
    break_duration: int = 0
    dominant_app: str = ""
    dominant_category: str = ""

@dataclass
class FocusSession:
    start_time: int
    end_time: int
    duration: int
    app_name: str
    category: str = "unknown"
    interruptions: int = 0
    focus_score: float = 0.0
    keystrokes: int = 0
    mouse_clicks: int = 0

@dataclass
class BreakPattern:
    timestamp: int  # when the gap started
    duration: int
    type: BreakType
    before_activity: str
    after_activity: str

@dataclass
class ProductivityBlock:
    id: str
    start_time: int
    end_time: int
    duration: int
    type: BlockType
    focus_score: float
    dominant_activity: str
    interruptions: int
    context_switches: int
    productivity_rating: ProductivityRating
    energy_level: EnergyLevel
    quality_score: int  # 0-100
