import logging
import pytest
from focuslens.models.activity import AppCategory
from focuslens.services.categories import AppCategorizer, AppCategoryStore

@pytest.fixture
def store(mock_db):
    return AppCategoryStore(mock_db, clock=lambda: 2000)

@pytest.mark.asyncio
async def test_load_categories(store, mock_db):
    mock_db.get_app_categories.return_value = [
        AppCategory(app_name="VSCode", category="Development", productivity_rating="productive")
    ]

    await store.load()

    assert len(store) == 1
    assert store.get("VSCode").productivity_rating == "productive"
    assert store.get("vscode") is None

@pytest.mark.asyncio
async def test_load_failure_keeps_empty_map(store, mock_db, caplog):
    mock_db.get_app_categories.side_effect = Exception("no such table")

    with caplog.at_level(logging.WARNING):
        await store.load()

    assert len(store) == 0
    assert "Failed to load app categories" in caplog.text

@pytest.mark.asyncio
async def test_set_category_persists(store, mock_db):
    created = await store.set_category("Slack", "Communication", "neutral")

    mock_db.save_app_category.assert_awaited_once_with(created)
    assert created.is_user_defined
    assert created.created_at == 2000
    assert store.get("Slack") is created

@pytest.mark.asyncio
async def test_set_category_keeps_creation_time(mock_db):
    now = [1000]
    store = AppCategoryStore(mock_db, clock=lambda: now[0])
    await store.set_category("Slack", "Communication", "neutral")
    now[0] = 5000

    updated = await store.set_category("Slack", "Work", "productive")

    assert updated.created_at == 1000
    assert updated.updated_at == 5000
    assert store.get("Slack").category == "Work"

def test_snapshot_is_isolated(categories):
    snapshot = categories.snapshot()
    snapshot.pop("VSCode")

    assert categories.get("VSCode") is not None

@pytest.fixture
def categorizer(categories):
    return AppCategorizer(categories)

@pytest.mark.parametrize("app_name,category,rating,confidence", [
    ("Visual Studio Code", "Development", "productive", 0.95),
    ("visual studio code", "Development", "productive", 0.95),
    ("Google Chrome Canary", "Browser", "neutral", 0.7),
    ("MyGameLauncher", "Entertainment", "distracting", 0.8),
    ("Music Box", "Entertainment", "distracting", 0.7),
    ("Xyzzy", "Uncategorized", "neutral", 0.3),
])
def test_suggest(categorizer, app_name, category, rating, confidence):
    suggestion = categorizer.suggest(app_name)

    assert suggestion.suggested_category == category
    assert suggestion.suggested_productivity_rating == rating
    assert suggestion.confidence == confidence

def test_partial_match_reason(categorizer):
    suggestion = categorizer.suggest("Google Chrome Canary")

    assert suggestion.reason == "Similar to google chrome"
    assert suggestion.is_common_app

def test_suggestions_skip_known_and_duplicate_apps(categorizer):
    suggestions = categorizer.get_suggestions(["VSCode", "vscode", "Figma", "figma", "Xyzzy"])

    assert [s.app_name for s in suggestions] == ["Figma", "Xyzzy"]
