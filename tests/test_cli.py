import asyncio
import json
import pytest
from click.testing import CliRunner
from unittest.mock import Mock, patch
from focuslens.cli.service import cli
from focuslens.services.database import DatabaseManager

MINUTE = 60_000

@pytest.fixture(autouse=True)
def no_log_files():
    with patch("focuslens.cli.service.setup_logging"):
        yield

@pytest.fixture
def runner():
    return CliRunner()

@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "focuslens.db")

def test_categorize(runner, db_path):
    result = runner.invoke(cli, ["--db", db_path, "categorize", "Slack", "Communication", "--rating", "neutral"])

    assert result.exit_code == 0
    assert "Slack" in result.output
    categories = asyncio.run(DatabaseManager(db_path).get_app_categories())
    assert [(c.app_name, c.is_user_defined) for c in categories] == [("Slack", True)]

def test_import_activities(runner, db_path, tmp_path, base_time):
    records = [
        {"timestamp": base_time + i * MINUTE, "app_name": "VSCode", "duration": MINUTE}
        for i in range(12)
    ]
    path = tmp_path / "activities.json"
    path.write_text(json.dumps(records))

    result = runner.invoke(cli, ["--db", db_path, "import-activities", str(path)])

    assert result.exit_code == 0
    assert "Imported 12 activities" in result.output
    tables = DatabaseManager(db_path).get_database_stats()["tables"]
    assert tables["activities"]["row_count"] == 12
    assert tables["work_sessions"]["row_count"] == 1
    assert tables["focus_sessions"]["row_count"] == 1

def test_import_rejects_invalid_records(runner, db_path, tmp_path):
    path = tmp_path / "activities.json"
    path.write_text(json.dumps([{"app_name": "VSCode", "duration": -5}]))

    result = runner.invoke(cli, ["--db", db_path, "import-activities", str(path)])

    assert result.exit_code == 1
    assert "Invalid activity file" in result.output

def test_trends_without_activity(runner, db_path):
    result = runner.invoke(cli, ["--db", db_path, "trends", "--days", "3"])

    assert result.exit_code == 0
    assert "No activity recorded" in result.output

def test_cleanup(runner, db_path):
    result = runner.invoke(cli, ["--db", db_path, "cleanup", "--days", "30"])

    assert result.exit_code == 0
    assert "Deleted 0 activities" in result.output

def test_monitor_samples(runner, db_path):
    with patch("focuslens.services.monitor.psutil") as psutil:
        psutil.cpu_percent.return_value = 42.0
        psutil.virtual_memory.return_value = Mock(percent=55.0)
        psutil.disk_usage.return_value = Mock(percent=70.0)
        psutil.net_io_counters.return_value = Mock(bytes_sent=0, bytes_recv=0)
        psutil.sensors_battery.return_value = None

        result = runner.invoke(cli, ["--db", db_path, "monitor", "--samples", "2", "--interval", "0"])

    assert result.exit_code == 0
    assert result.output.count("CPU  42.0%") == 2
    tables = DatabaseManager(db_path).get_database_stats()["tables"]
    assert tables["system_metrics"]["row_count"] == 2

def test_patterns_without_activity(runner, db_path):
    result = runner.invoke(cli, ["--db", db_path, "patterns"])

    assert result.exit_code == 0
    assert "No recurring patterns found yet" in result.output

def test_distractions(runner, db_path):
    result = runner.invoke(cli, ["--db", db_path, "distractions", "--timeframe", "week"])

    assert result.exit_code == 0
    assert "Distractions: 0" in result.output
    assert "High 0" in result.output
