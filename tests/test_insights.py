import logging
import pytest
from unittest.mock import AsyncMock, Mock
from focuslens.models.insights import ProductivityInsight
from focuslens.models.metrics import ProductivityTrend
from focuslens.services.insights import AutomatedInsightGenerator
from focuslens.services.notifier import Notifier
from focuslens.services.productivity import RealTimeProductivityCalculator

MINUTE = 60_000
HOUR = 60 * MINUTE

def _trends(scores, focus=0.7, active=HOUR):
    return [
        ProductivityTrend(
            date=f"2024-01-{day + 1:02d}",
            productivity_score=score,
            focus_score=focus,
            efficiency=0.9,
            total_active_time=active
        )
        for day, score in enumerate(scores)
    ]

def _insight(insight_type, priority="medium", timestamp=0):
    return ProductivityInsight(
        id=f"{insight_type}_{timestamp}",
        type=insight_type,
        title=insight_type,
        description="",
        actionable=True,
        priority=priority,
        timestamp=timestamp
    )

@pytest.fixture
def calculator():
    calculator = Mock(spec=RealTimeProductivityCalculator)
    calculator.get_productivity_trends = AsyncMock(return_value=[])
    return calculator

@pytest.fixture
def notifier():
    return Mock(spec=Notifier)

@pytest.fixture
def generator(mock_db, analytics, calculator, notifier, base_time):
    return AutomatedInsightGenerator(mock_db, analytics, calculator, notifier=notifier, clock=lambda: base_time)

def _by_type(items):
    return {item.type: item for item in items}

def test_no_achievements_without_trends(generator):
    assert generator.detect_achievements([], []) == []

def test_weekly_achievements(generator):
    achievements = generator.detect_achievements([], _trends([0.9] * 7, focus=0.85))

    assert [a.title for a in achievements] == ["Excellent Productivity", "Deep Focus", "One Week Streak"]
    by_type = _by_type(achievements)
    assert by_type["productivity_milestone"].threshold == 0.85
    assert by_type["consistency"].value == 7
    assert by_type["consistency"].category == "weekly"

def test_good_tier_is_awarded(generator):
    achievements = _by_type(generator.detect_achievements([], _trends([0.72] * 2, focus=0.65)))

    assert achievements["productivity_milestone"].title == "Good Productivity"
    assert achievements["focus_improvement"].title == "Steady Focus"
    assert "consistency" not in achievements

def test_efficiency_achievement(generator):
    achievements = generator.detect_achievements([], _trends([0.5, 0.5, 0.5, 0.75, 0.75, 0.75], focus=0.5))

    assert [a.type for a in achievements] == ["efficiency"]
    assert achievements[0].value == pytest.approx(0.25)
    assert achievements[0].threshold == 0.2

def test_efficiency_needs_previous_window(generator):
    assert generator.efficiency_improvement(_trends([0.1, 0.9, 0.9])) == 0.0

def test_consistent_days_counts_back_from_latest(generator):
    assert generator.consistent_days(_trends([0.9, 0.2, 0.7, 0.6, 0.8])) == 3
    assert generator.consistent_days(_trends([0.9, 0.5])) == 0

@pytest.mark.parametrize("baseline,recent,severity", [
    (0.9, 0.55, "critical"),
    (0.8, 0.55, "high"),
    (0.8, 0.63, "medium"),
])
def test_declining_productivity_warning(generator, baseline, recent, severity):
    warnings = _by_type(generator.detect_warnings([], _trends([baseline] * 4 + [recent] * 3)))

    assert warnings["declining_productivity"].severity == severity
    assert warnings["declining_productivity"].trend == "decreasing"

def test_no_decline_without_baseline(generator):
    assert generator.productivity_decline(_trends([0.9, 0.1, 0.1])) == 0.0
    assert generator.productivity_decline(_trends([0.1] * 4 + [0.9] * 3)) == 0.0

@pytest.mark.parametrize("focus,severity", [(0.25, "high"), (0.1, "critical")])
def test_low_focus_distraction_warning(generator, focus, severity):
    warnings = _by_type(generator.detect_warnings([], _trends([0.5] * 3, focus=focus)))

    assert warnings["excessive_distraction"].severity == severity
    assert warnings["excessive_distraction"].current_value == pytest.approx(focus)

def test_rapid_switching_distraction_warning(generator, contiguous):
    activities = contiguous([("Slack" if i % 2 else "Mail", 10_000) for i in range(30)])

    warnings = _by_type(generator.detect_warnings(activities, []))

    assert warnings["excessive_distraction"].severity == "medium"
    assert generator.context_switches_per_hour(activities) > 100

def test_burnout_from_consecutive_long_days(generator):
    warnings = _by_type(generator.detect_warnings([], _trends([0.7] * 5, active=11 * HOUR)))

    assert warnings["burnout_risk"].severity == "high"

def test_burnout_critical_for_very_long_days(generator, make_activity):
    warnings = _by_type(generator.detect_warnings([make_activity(duration=13 * HOUR)], []))

    assert warnings["burnout_risk"].severity == "critical"
    assert warnings["burnout_risk"].current_value == pytest.approx(13)

@pytest.mark.parametrize("days,severity", [(7, "high"), (5, "medium")])
def test_poor_focus_warning(generator, days, severity):
    warnings = _by_type(generator.detect_warnings([], _trends([0.7] * days, focus=0.35)))

    assert warnings["poor_focus"].severity == severity
    assert "excessive_distraction" not in warnings

def test_healthy_week_has_no_warnings(generator):
    assert generator.detect_warnings([], _trends([0.8] * 7, focus=0.8)) == []

def test_insights_sorted_by_priority(generator, make_activity):
    activities = [make_activity("VSCode", focus_score=0.9)]

    insights = generator.generate_insights(activities, _trends([0.8, 0.7, 0.5]), historical_average=0.3)

    assert [i.type for i in insights] == ["break_suggestion", "peak_hours", "focus_improvement"]
    assert [i.priority for i in insights] == ["high", "medium", "low"]
    assert "10:00-11:00" in insights[1].description

@pytest.mark.parametrize("historical_average", [None, 0.0])
def test_comparative_insight_needs_history(generator, historical_average):
    insights = generator.generate_insights([], _trends([0.9] * 3), historical_average)
    assert [i.type for i in insights] == []

def test_improving_trend_insight(generator):
    insights = generator.generate_insights([], _trends([0.4, 0.5, 0.6]), historical_average=0.5)

    assert [i.title for i in insights] == ["Productivity Improving"]

def test_high_switch_rate_insight(generator, contiguous):
    activities = contiguous([("Slack" if i % 2 else "Mail", MINUTE) for i in range(30)])

    insights = _by_type(generator.generate_insights(activities, []))

    assert insights["distraction_pattern"].priority == "medium"

@pytest.mark.parametrize("scores,direction", [
    ([0.5], "stable"),
    ([0.0, 0.0], "stable"),
    ([0.0, 0.5], "improving"),
    ([0.5, 0.52], "stable"),
    ([0.5, 0.4], "declining"),
])
def test_trend_direction(generator, scores, direction):
    assert generator.trend_direction(_trends(scores)) == direction

def test_actionable_recommendations(generator):
    assert generator.generate_actionable_recommendations([]) == []
    assert len(generator.generate_actionable_recommendations([_insight("focus_improvement")])) == 3
    assert len(generator.generate_actionable_recommendations([_insight("break_suggestion")])) == 6
    assert len(generator.generate_actionable_recommendations([
        _insight("focus_improvement"), _insight("app_recommendation")
    ])) == 6

@pytest.mark.asyncio
async def test_generate_automated_insights(generator, mock_db, calculator, notifier, make_activity, caplog):
    mock_db.get_activities.return_value = [make_activity("VSCode", focus_score=0.9)]
    mock_db.save_insight.side_effect = [Exception("database is locked"), 1]
    calculator.get_productivity_trends.return_value = _trends([0.8, 0.7, 0.5], focus=0.25)

    with caplog.at_level(logging.ERROR):
        report = await generator.generate_automated_insights(0, 1)

    assert [i.type for i in report.insights] == ["break_suggestion", "peak_hours"]
    assert mock_db.save_insight.await_count == 2
    assert "Failed to save insight" in caplog.text
    assert [w.type for w in report.warnings] == ["excessive_distraction"]
    notifier.notify_productivity_threshold.assert_called_once_with(report.warnings[0])
    notifier.notify_daily_summary.assert_called_once_with(calculator.get_productivity_trends.return_value[-1])
    assert len(report.recommendations) == 6

@pytest.mark.asyncio
async def test_no_daily_summary_without_trends(generator, notifier):
    await generator.generate_automated_insights(0, 1)

    notifier.notify_daily_summary.assert_not_called()

@pytest.mark.asyncio
async def test_generate_automated_insights_fetch_failure(generator, mock_db):
    mock_db.get_activities.side_effect = Exception("database is locked")

    report = await generator.generate_automated_insights(0, 1)

    assert report.insights == []
    assert report.warnings == []
    mock_db.save_insight.assert_not_awaited()

@pytest.mark.asyncio
async def test_historical_average(generator, calculator):
    assert await generator._historical_average(30) is None

    calculator.get_productivity_trends.return_value = _trends([0.4, 0.6])
    assert await generator._historical_average(30) == pytest.approx(0.5)

    calculator.get_productivity_trends.side_effect = Exception("boom")
    assert await generator._historical_average(30) == 0.5
