import pytest
from datetime import datetime
from unittest.mock import AsyncMock, Mock
from focuslens.models.activity import ActivityRecord, AppCategory
from focuslens.services.analytics import ProductivityAnalytics
from focuslens.services.categories import AppCategoryStore
from focuslens.services.database import DatabaseManager

# Local 10:00 so hour bucketing is independent of the machine's timezone
BASE_TIME = int(datetime(2024, 1, 15, 10, 0).timestamp() * 1000)
MINUTE = 60_000

@pytest.fixture
def base_time():
    return BASE_TIME

@pytest.fixture
def make_activity():
    """Build activity records with sensible defaults"""
    def _make(app_name="VSCode", timestamp=BASE_TIME, duration=MINUTE, **fields):
        return ActivityRecord(app_name=app_name, timestamp=timestamp, duration=duration, **fields)
    return _make

@pytest.fixture
def contiguous(make_activity):
    """Build back-to-back activities from (app_name, duration) pairs"""
    def _build(pairs, start=BASE_TIME, **fields):
        activities = []
        timestamp = start
        for app_name, duration in pairs:
            activities.append(make_activity(app_name, timestamp, duration, **fields))
            timestamp += duration
        return activities
    return _build

@pytest.fixture
def categories():
    """Provide a category store with a few rated apps"""
    return AppCategoryStore(categories=[
        AppCategory(app_name="VSCode", category="Development", productivity_rating="productive"),
        AppCategory(app_name="Slack", category="Communication", productivity_rating="neutral"),
        AppCategory(app_name="YouTube", category="Entertainment", productivity_rating="distracting"),
    ])

@pytest.fixture
def analytics(categories):
    return ProductivityAnalytics(categories, clock=lambda: BASE_TIME)

@pytest.fixture
def db():
    """Provide a test database instance"""
    db = DatabaseManager(":memory:")  # Use in-memory database for testing
    yield db
    db.close()

@pytest.fixture
def mock_db():
    """Create a mock database manager"""
    db = Mock(spec=DatabaseManager)
    db.get_activities = AsyncMock(return_value=[])
    db.get_app_categories = AsyncMock(return_value=[])
    db.save_activity = AsyncMock(return_value=1)
    db.save_app_category = AsyncMock()
    db.save_work_session = AsyncMock(return_value=1)
    db.save_focus_session = AsyncMock(return_value=1)
    db.save_productivity_block = AsyncMock(return_value=1)
    db.save_insight = AsyncMock(return_value=1)
    db.save_system_metrics = AsyncMock(return_value=1)
    return db
