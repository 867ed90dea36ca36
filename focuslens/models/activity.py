from typing import Literal, Optional, Set
from pydantic import BaseModel, ConfigDict, Field
from focuslens.services.clock import local_hour

ProductivityRating = Literal["productive", "neutral", "distracting"]

class ActivityRecord(BaseModel):
    """A single observation from the capture loop"""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    timestamp: int = Field(description="Start of the observation in epoch milliseconds")
    app_name: str = Field(description="Name of the foreground application")
    window_title: str = Field(default="", description="Title of the foreground window")
    duration: int = Field(ge=0, description="Observed duration in milliseconds")
    category: Optional[str] = None
    is_idle: bool = False
    url: Optional[str] = None
    cpu_usage: Optional[float] = Field(
        default=None,
        ge=0,
        description="CPU usage of the application (%)"
    )
    memory_usage: Optional[float] = Field(
        default=None,
        ge=0,
        description="Memory usage of the application (%)"
    )
    focus_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    productivity_rating: Optional[ProductivityRating] = None
    context_switches: Optional[int] = Field(
        default=None,
        ge=0,
        description="Cumulative context switch count at observation time"
    )
    keystrokes: Optional[int] = Field(default=None, ge=0)
    mouse_clicks: Optional[int] = Field(default=None, ge=0)

    @property
    def end_time(self) -> int:
        return self.timestamp + self.duration

    @property
    def hour(self) -> int:
        """Local wall-clock hour the activity started in"""
        return local_hour(self.timestamp)

class AppCategory(BaseModel):
    """Category and productivity rating assigned to an application"""
    id: Optional[int] = None
    app_name: str = Field(description="Exact, case-sensitive application name")
    category: str = Field(description="Free-text application group")
    productivity_rating: ProductivityRating = "neutral"
    is_user_defined: bool = False
    created_at: int = 0
    updated_at: int = 0

class ActivityFilter(BaseModel):
    """Query parameters for activity lookups"""
    start: Optional[int] = Field(default=None, description="Inclusive lower bound (ms)")
    end: Optional[int] = Field(default=None, description="Inclusive upper bound (ms)")
    app_names: Optional[Set[str]] = None
    categories: Optional[Set[str]] = None
    limit: Optional[int] = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)
