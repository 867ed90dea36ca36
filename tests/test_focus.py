import pytest
from focuslens.services.focus import AdvancedFocusDetector, coefficient_of_variation

MINUTE = 60_000
SECOND = 1_000

@pytest.fixture
def detector():
    return AdvancedFocusDetector()

@pytest.mark.parametrize("values,expected", [
    ([], 1.0),
    ([0, 0], 0.0),
    ([2, 2, 2], 0.0),
    ([1, 3], 0.5),
])
def test_coefficient_of_variation(values, expected):
    assert coefficient_of_variation(values) == pytest.approx(expected)

def test_focus_score_empty(detector):
    assert detector.calculate_focus_score([]) == 0.0

def test_long_single_app_block_scores_full_focus(detector, make_activity):
    assert detector.calculate_focus_score([make_activity("VSCode", duration=40 * MINUTE)]) == 1.0

def test_focus_score_bounded(detector, contiguous):
    activities = contiguous([("A", 6 * MINUTE), ("B", 10 * SECOND), ("A", 45 * MINUTE), ("C", MINUTE)])
    assert 0.0 <= detector.calculate_focus_score(activities) <= 1.0

def test_switch_classification(detector, make_activity, base_time):
    first = make_activity("A", base_time, 6 * MINUTE)
    quick = make_activity("B", first.end_time + 5 * SECOND, MINUTE)
    normal = make_activity("C", quick.end_time + MINUTE, MINUTE)
    extended = make_activity("D", normal.end_time + 200 * SECOND, MINUTE)

    switches = detector.detect_context_switches([first, quick, normal, extended])

    assert [s.switch_type for s in switches] == ["quick", "normal", "extended"]
    assert [s.impact for s in switches] == ["high", "low", "low"]
    assert switches[0].from_app == "A"
    assert switches[0].to_app == "B"
    assert switches[0].duration == 5 * SECOND

def test_switch_after_long_activity_has_medium_impact(detector, make_activity, base_time):
    first = make_activity("A", base_time, 6 * MINUTE)
    second = make_activity("B", first.end_time + MINUTE, MINUTE)

    assert detector.detect_context_switches([first, second])[0].impact == "medium"

def test_same_app_pairs_are_not_switches(detector, contiguous):
    assert detector.detect_context_switches(contiguous([("A", MINUTE)] * 4)) == []

def test_contiguous_same_app_run_becomes_session(detector, contiguous, base_time):
    activities = contiguous([("A", 4 * MINUTE), ("A", 2 * MINUTE), ("B", 4 * MINUTE)], keystrokes=10)

    sessions = detector.identify_focus_sessions(activities)

    assert len(sessions) == 1
    session = sessions[0]
    assert session.app_name == "A"
    assert session.start_time == base_time
    assert session.duration == 6 * MINUTE
    assert session.keystrokes == 20
    assert session.category == "unknown"

def test_long_gap_splits_run(detector, make_activity, base_time):
    activities = [
        make_activity("A", base_time, 4 * MINUTE),
        make_activity("A", base_time + 8 * MINUTE, 4 * MINUTE),
    ]
    assert detector.identify_focus_sessions(activities) == []

def test_no_focus_session_shorter_than_threshold(detector, contiguous):
    activities = contiguous([
        ("A", 2 * MINUTE), ("B", 7 * MINUTE), ("A", 4 * MINUTE),
        ("A", MINUTE), ("C", 30 * SECOND), ("C", 5 * MINUTE),
    ])
    sessions = detector.identify_focus_sessions(activities)

    assert len(sessions) == 3
    assert all(s.duration >= detector.FOCUS_THRESHOLD for s in sessions)

def test_internal_gaps_count_as_interruptions(detector, make_activity, base_time):
    activities = [
        make_activity("A", base_time, 3 * MINUTE),
        make_activity("A", base_time + 4 * MINUTE, 3 * MINUTE),  # 1 minute gap
        make_activity("A", base_time + 7 * MINUTE + 20 * SECOND, 3 * MINUTE),  # 20 second gap
    ]

    sessions = detector.identify_focus_sessions(activities)

    assert len(sessions) == 1
    assert sessions[0].interruptions == 1

def test_focus_patterns_defaults_for_empty(detector):
    pattern = detector.analyze_focus_patterns([])

    assert pattern.most_focused_time_of_day == 9
    assert pattern.least_focused_time_of_day == 15
    assert pattern.average_focus_session_duration == 0.0
    assert pattern.focus_sessions_per_hour == 0.0

def test_focus_patterns_by_hour(detector, make_activity, base_time):
    activities = [
        make_activity("A", base_time, 6 * MINUTE),
        make_activity("B", base_time + 60 * MINUTE, MINUTE),
    ]

    pattern = detector.analyze_focus_patterns(activities)

    assert pattern.most_focused_time_of_day == 10
    assert pattern.least_focused_time_of_day == 11
    assert pattern.average_focus_session_duration == 6 * MINUTE
    assert pattern.interruption_frequency == pytest.approx(1 / (7 / 60))

def _interrupted_stream(make_activity, base_time):
    first = make_activity("A", base_time, 2 * MINUTE)
    chat = make_activity("B", first.end_time + 5 * SECOND, MINUTE)
    back = make_activity("A", chat.end_time + 3 * SECOND, 6 * MINUTE)
    return [first, chat, back]

def test_recovery_time(detector, make_activity, base_time):
    pattern = detector.analyze_focus_patterns(_interrupted_stream(make_activity, base_time))
    assert pattern.recovery_time == 5 * SECOND

def test_interruption_analysis(detector, make_activity, base_time):
    analysis = detector.get_interruption_analysis(_interrupted_stream(make_activity, base_time))

    assert analysis.total_interruptions == 2
    assert analysis.average_interruption_duration == 4 * SECOND
    assert set(analysis.most_disruptive_apps) == {"A", "B"}
    assert analysis.interruptions_by_hour == {10: 2}

    patterns = {p.interruption_app: p for p in analysis.recovery_patterns}
    assert patterns["B"].success_rate == 1.0
    assert patterns["B"].average_recovery_time == MINUTE + 3 * SECOND
    assert patterns["B"].common_recovery_apps == ["A"]
    assert patterns["A"].success_rate == 0.0

def test_interruption_analysis_without_short_switches(detector, make_activity, base_time):
    activities = [
        make_activity("A", base_time, MINUTE),
        make_activity("B", base_time + 2 * MINUTE, MINUTE),
    ]
    analysis = detector.get_interruption_analysis(activities)

    assert analysis.total_interruptions == 0
    assert analysis.recovery_patterns == []
