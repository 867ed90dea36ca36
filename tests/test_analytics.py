import pytest
from focuslens.services.errors import EmptySessionError

MINUTE = 60_000

def test_productive_app_score_clamps_to_one(analytics, make_activity):
    """Productive base plus every bonus still caps at 1.0"""
    activity = make_activity("VSCode", duration=400000, cpu_usage=40, context_switches=2)
    assert analytics.calculate_productivity_score(activity) == 1.0

def test_unknown_app_scores_neutral(analytics, make_activity):
    assert analytics.calculate_productivity_score(make_activity("Unknown App")) == 0.5

def test_bonuses_for_distracting_app(analytics, make_activity):
    activity = make_activity("YouTube", duration=400000, cpu_usage=40, context_switches=0)
    score = analytics.calculate_productivity_score(activity)
    assert score == pytest.approx(0.3)
    assert analytics.rate(score) == "neutral"

@pytest.mark.parametrize("cpu_usage,expected", [
    (5, 0.5),
    (10, 0.5),
    (11, 0.6),
    (79, 0.6),
    (80, 0.5),
    (None, 0.5),
])
def test_cpu_bonus_window(analytics, make_activity, cpu_usage, expected):
    activity = make_activity("Unknown App", cpu_usage=cpu_usage)
    assert analytics.calculate_productivity_score(activity) == pytest.approx(expected)

def test_missing_context_switches_skips_bonus(analytics, make_activity):
    assert analytics.calculate_productivity_score(make_activity("Slack")) == 0.5
    assert analytics.calculate_productivity_score(make_activity("Slack", context_switches=0)) == pytest.approx(0.6)
    assert analytics.calculate_productivity_score(make_activity("Slack", context_switches=5)) == 0.5

def test_scores_stay_in_unit_interval(analytics, make_activity):
    for app in ["VSCode", "Slack", "YouTube", "Other"]:
        for duration in [0, MINUTE, 10 * MINUTE]:
            for cpu in [None, 0, 50, 95]:
                for switches in [None, 0, 10]:
                    activity = make_activity(app, duration=duration, cpu_usage=cpu, context_switches=switches)
                    assert 0.0 <= analytics.calculate_productivity_score(activity) <= 1.0

@pytest.mark.parametrize("score,rating", [
    (0.7, "productive"),
    (0.69, "neutral"),
    (0.3, "neutral"),
    (0.29, "distracting"),
])
def test_rate_thresholds(analytics, score, rating):
    assert analytics.rate(score) == rating

def test_enrich_fills_rating_and_category(analytics, make_activity):
    activity = make_activity("VSCode", duration=400000)
    enriched = analytics.enrich(activity)

    assert enriched.productivity_rating == "productive"
    assert enriched.category == "Development"
    assert activity.productivity_rating is None

def test_alternating_apps_detects_every_switch(analytics, contiguous):
    activities = contiguous([("Slack" if i % 2 == 0 else "Mail", MINUTE) for i in range(10)])

    assert analytics.detect_context_switches(activities) == 9
    assert analytics.calculate_focus_score(activities) == pytest.approx(0.0)

def test_grouping_same_app_does_not_add_switches(analytics, contiguous):
    scattered = contiguous([("A", MINUTE), ("B", MINUTE), ("A", MINUTE), ("B", MINUTE)])
    grouped = contiguous([("A", MINUTE), ("A", MINUTE), ("B", MINUTE), ("B", MINUTE)])

    assert analytics.detect_context_switches(scattered) == 3
    assert analytics.detect_context_switches(grouped) == 1

def test_analyze_empty_returns_default_metrics(analytics):
    metrics = analytics.analyze_productivity_patterns([])

    assert metrics.total_active_time == 0
    assert metrics.productive_time == 0
    assert metrics.focus_score == 0
    assert metrics.peak_productivity_hour == 9
    assert metrics.date == "2024-01-15"

def test_analyze_productivity_patterns(analytics, make_activity, base_time):
    activities = [
        make_activity("VSCode", base_time, 20 * MINUTE, context_switches=3),
        make_activity("YouTube", base_time + 4 * 60 * MINUTE, 10 * MINUTE),
    ]

    metrics = analytics.analyze_productivity_patterns(activities)

    assert metrics.total_active_time == 30 * MINUTE
    assert metrics.productive_time == 20 * MINUTE
    assert metrics.distracting_time == 10 * MINUTE
    assert metrics.neutral_time == 0
    assert metrics.context_switches == 3
    assert metrics.peak_productivity_hour == 10
    assert metrics.break_frequency == pytest.approx(2.0)
    assert metrics.average_session_duration == pytest.approx(15 * MINUTE)

def test_analyze_is_idempotent(analytics, contiguous):
    activities = contiguous([("VSCode", 6 * MINUTE), ("Slack", MINUTE), ("VSCode", 12 * MINUTE)])
    snapshot = list(activities)

    first = analytics.analyze_productivity_patterns(activities)
    second = analytics.analyze_productivity_patterns(activities)

    assert first == second
    assert activities == snapshot

def test_create_work_session_rejects_empty(analytics):
    with pytest.raises(EmptySessionError):
        analytics.create_work_session([])

def test_create_work_session(analytics, contiguous, base_time):
    activities = contiguous([("VSCode", 20 * MINUTE), ("Slack", 5 * MINUTE), ("VSCode", 10 * MINUTE)])

    session = analytics.create_work_session(activities)

    assert session.start_time == base_time
    assert session.end_time == base_time + 35 * MINUTE
    assert session.duration == 35 * MINUTE
    assert session.dominant_app == "VSCode"
    assert session.dominant_category == "Development"
    assert session.context_switches == 2
    assert session.productivity_rating == "productive"
    assert 0.0 <= session.focus_score <= 1.0

def test_create_work_session_unknown_dominant_app(analytics, contiguous):
    session = analytics.create_work_session(contiguous([("Mystery", 20 * MINUTE)]))

    assert session.dominant_category == "Unknown"
    assert session.productivity_rating == "neutral"

def test_distracting_session_rating(analytics, contiguous):
    session = analytics.create_work_session(contiguous([("YouTube", MINUTE), ("YouTube", MINUTE)]))
    assert session.productivity_rating == "distracting"

def test_detect_session_boundaries(analytics, make_activity, base_time):
    activities = [
        make_activity("A", base_time, MINUTE),
        make_activity("A", base_time + MINUTE, MINUTE),
        make_activity("B", base_time + 8 * MINUTE, MINUTE),  # 6 minute gap
        make_activity("B", base_time + 11 * MINUTE, MINUTE),  # 2 minute gap
    ]
    assert analytics.detect_session_boundaries(activities) == [2]
