import pytest
from rich.console import Console
from focuslens.models.insights import InsightReport, ProductivityWarning
from focuslens.models.metrics import ProductivityOptimization, ProductivityTrend, SystemMetrics, WorkHours
from focuslens.models.patterns import AppDistraction, DistractionStats, ProductivityCycle, WorkHabit
from focuslens.services.display import TerminalDisplay

@pytest.fixture
def console():
    return Console(record=True, width=160)

@pytest.fixture
def display(console):
    return TerminalDisplay(console)

def test_show_trends(display, console):
    display.show_trends([ProductivityTrend(
        date="2024-01-15",
        productivity_score=0.82,
        focus_score=0.5,
        efficiency=0.99,
        top_productive_apps=["VSCode"],
        peak_hours=[10],
        total_active_time=5_400_000
    )], 7)

    output = console.export_text()
    assert "2024-01-15" in output
    assert "82%" in output
    assert "1.5h" in output
    assert "10:00" in output

def test_show_empty_report(display, console):
    display.show_insight_report(InsightReport())
    assert "Not enough data for insights yet" in console.export_text()

def test_show_warning(display, console):
    display.show_insight_report(InsightReport(warnings=[ProductivityWarning(
        id="burnout_risk_0",
        type="burnout_risk",
        severity="high",
        title="Burnout Risk Detected",
        description="Long days",
        timestamp=0,
        trend="increasing",
        threshold=10,
        current_value=11,
        recommendations=["Set strict work hour boundaries"]
    )]))

    output = console.export_text()
    assert "Burnout Risk Detected (high)" in output
    assert "Set strict work hour boundaries" in output

def test_show_optimization(display, console):
    display.show_optimization(ProductivityOptimization(
        recommendations=["Batch similar tasks"],
        optimal_work_hours=WorkHours(start=10, end=18),
        suggested_break_interval=90
    ))

    output = console.export_text()
    assert "10:00 - 18:00" in output
    assert "90 minutes" in output
    assert "Batch similar tasks" in output

def test_show_system_metrics(display, console):
    display.show_system_metrics(SystemMetrics(timestamp=0, cpu_usage=12.5, memory_usage=40.0))
    assert "CPU  12.5%" in console.export_text()

def test_show_patterns(display, console):
    display.show_patterns(
        [],
        [WorkHabit(
            id="break_timing_0",
            type="break_timing",
            pattern="Takes breaks every 0.2 hours",
            frequency=6,
            confidence=0.6,
            description="You typically take breaks every 0.2 hours",
            impact="negative",
            recommendation="Your breaks might be too frequent"
        )],
        [ProductivityCycle(
            id="cycle_peak_9_0",
            start_hour=9,
            end_hour=10,
            type="peak",
            average_productivity=0.85,
            consistency=0.8,
            days_observed=2,
            confidence=0.8
        )],
        []
    )

    output = console.export_text()
    assert "You typically take breaks every 0.2 hours" in output
    assert "Your breaks might be too frequent" in output
    assert "9:00 - 11:00" in output
    assert "85%" in output

def test_show_no_patterns(display, console):
    display.show_patterns([], [], [], [])
    assert "No recurring patterns found yet" in console.export_text()

def test_show_distraction_stats(display, console):
    display.show_distraction_stats(DistractionStats(
        total_events=2,
        total_distraction_time=1_800_000,
        top_distracting_apps=[AppDistraction("YouTube", 2, 1_800_000)],
        average_distraction_duration=900_000,
        severity_breakdown={"low": 0, "medium": 2, "high": 0}
    ), "week")

    output = console.export_text()
    assert "30 minutes" in output
    assert "Medium 2" in output
    assert "YouTube" in output
