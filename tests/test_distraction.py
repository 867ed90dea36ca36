import logging
import pytest
from focuslens.models.activity import AppCategory
from focuslens.models.patterns import AppDistraction, DistractionStats
from focuslens.services.categories import AppCategoryStore
from focuslens.services.clock import DAY_MS
from focuslens.services.distraction import DistractionDetector
from focuslens.services.errors import AnalyticsError

MINUTE = 60_000

@pytest.fixture
def store():
    return AppCategoryStore(categories=[
        AppCategory(app_name="VSCode", category="Development", productivity_rating="productive"),
        AppCategory(app_name="YouTube", category="Entertainment", productivity_rating="distracting"),
        AppCategory(app_name="Reddit", category="Social Media", productivity_rating="distracting"),
    ])

@pytest.fixture
def detector(mock_db, store, base_time):
    return DistractionDetector(mock_db, store, clock=lambda: base_time, threshold_minutes=5)

@pytest.fixture
def day_of_activity(contiguous):
    return contiguous([
        ("YouTube", 6 * MINUTE),
        ("VSCode", 10 * MINUTE),
        ("Reddit", 20 * MINUTE),
        ("VSCode", MINUTE),
        ("YouTube", 16 * MINUTE),
    ])

def test_same_app_runs_are_joined(detector, contiguous, base_time):
    events = detector.detect_distractions(contiguous([
        ("YouTube", 3 * MINUTE),
        ("YouTube", 3 * MINUTE),
        ("VSCode", 10 * MINUTE),
        ("YouTube", 4 * MINUTE),
    ]))

    assert len(events) == 1
    event = events[0]
    assert event.app_name == "YouTube"
    assert event.duration == 6 * MINUTE
    assert event.timestamp == base_time + 6 * MINUTE
    assert event.severity == "medium"
    assert event.context == "Spent 6 minutes on potentially distracting app"

def test_recorded_rating_wins_over_category(detector, make_activity):
    assert detector.detect_distractions([make_activity("YouTube", duration=10 * MINUTE, productivity_rating="neutral")]) == []

    events = detector.detect_distractions([
        make_activity("Solitaire", duration=10 * MINUTE, productivity_rating="distracting")
    ])
    assert [e.app_name for e in events] == ["Solitaire"]

def test_threshold_from_constructor(mock_db, store, make_activity):
    detector = DistractionDetector(mock_db, store, threshold_minutes=1)

    events = detector.detect_distractions([make_activity("YouTube", duration=90_000)])

    assert events[0].severity == "low"
    assert events[0].context == "Spent 2 minutes on potentially distracting app"

@pytest.mark.parametrize("duration,severity", [
    (2 * MINUTE - 1, "low"),
    (2 * MINUTE, "medium"),
    (15 * MINUTE, "medium"),
    (15 * MINUTE + 1, "high"),
])
def test_severity(duration, severity):
    assert DistractionDetector.severity(duration) == severity

@pytest.mark.asyncio
async def test_distraction_stats(detector, mock_db, day_of_activity, base_time):
    mock_db.get_activities.return_value = day_of_activity

    stats = await detector.get_distraction_stats("week")

    activity_filter = mock_db.get_activities.await_args.args[0]
    assert (activity_filter.start, activity_filter.end) == (base_time - 7 * DAY_MS, base_time)
    assert stats.total_events == 3
    assert stats.total_distraction_time == 42 * MINUTE
    assert stats.average_distraction_duration == 14 * MINUTE
    assert stats.top_distracting_apps == [
        AppDistraction("YouTube", 2, 22 * MINUTE),
        AppDistraction("Reddit", 1, 20 * MINUTE),
    ]
    assert stats.severity_breakdown == {"low": 0, "medium": 1, "high": 2}

@pytest.mark.asyncio
async def test_distraction_stats_empty(detector):
    assert await detector.get_distraction_stats() == DistractionStats()

@pytest.mark.asyncio
async def test_distraction_stats_unknown_timeframe(detector):
    with pytest.raises(AnalyticsError):
        await detector.get_distraction_stats("year")

@pytest.mark.asyncio
async def test_distraction_stats_query_failure(detector, mock_db, caplog):
    mock_db.get_activities.side_effect = Exception("database is locked")

    with caplog.at_level(logging.ERROR):
        stats = await detector.get_distraction_stats("month")

    assert stats == DistractionStats()
    assert "Failed to get distraction stats" in caplog.text

def test_top_apps_are_limited_to_five(detector, contiguous):
    apps = ["YouTube", "Reddit", "Twitter", "Netflix", "Twitch", "Steam"]
    activities = contiguous(
        [(app, (10 + i) * MINUTE) for i, app in enumerate(apps)],
        productivity_rating="distracting"
    )

    stats = DistractionDetector.summarize(detector.detect_distractions(activities))

    assert stats.total_events == 6
    assert [a.app_name for a in stats.top_distracting_apps] == ["Steam", "Twitch", "Netflix", "Twitter", "Reddit"]
