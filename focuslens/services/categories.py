"""Application categories and categorization suggestions"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from focuslens.models.activity import AppCategory, ProductivityRating
from focuslens.services.clock import Clock, system_clock

logger = logging.getLogger(__name__)

@dataclass
class CategorySuggestion:
    app_name: str
    suggested_category: str
    suggested_productivity_rating: ProductivityRating
    confidence: float
    reason: str
    is_common_app: bool

class AppCategoryStore:
    """In-memory map of app name -> category, loaded from the database.

    Lookups are exact and case-sensitive. Computations should work on
    ``snapshot()`` so a category update mid-computation cannot change
    their result.
    """

    def __init__(self, db=None, clock: Clock = system_clock, categories: Iterable[AppCategory] = ()):
        self.db = db
        self.clock = clock
        self._categories: Dict[str, AppCategory] = {c.app_name: c for c in categories}

    async def load(self) -> None:
        """Load categories from the database, keeping an empty map on failure"""
        if self.db is None:
            return
        try:
            categories = await self.db.get_app_categories()
        except Exception as e:
            logger.warning(f"Failed to load app categories: {e}")
            return
        self._categories = {c.app_name: c for c in categories}
        logger.debug(f"Loaded {len(self._categories)} app categories")

    def get(self, app_name: str) -> Optional[AppCategory]:
        return self._categories.get(app_name)

    def snapshot(self) -> Dict[str, AppCategory]:
        return dict(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    async def set_category(
        self,
        app_name: str,
        category: str,
        productivity_rating: ProductivityRating,
        is_user_defined: bool = True
    ) -> AppCategory:
        """Create or update a category and persist it"""
        now = self.clock()
        existing = self._categories.get(app_name)
        record = AppCategory(
            app_name=app_name,
            category=category,
            productivity_rating=productivity_rating,
            is_user_defined=is_user_defined,
            created_at=existing.created_at if existing else now,
            updated_at=now
        )
        if self.db is not None:
            await self.db.save_app_category(record)
        self._categories[app_name] = record
        return record

KNOWN_APPS: Dict[str, Tuple[str, ProductivityRating, List[str]]] = {
    "development": ("Development", "productive", [
        "Visual Studio Code", "IntelliJ IDEA", "WebStorm", "PyCharm", "Eclipse",
        "Sublime Text", "Vim", "Emacs", "Android Studio", "Xcode", "GitHub Desktop",
        "Terminal", "iTerm2", "Windows Terminal", "PowerShell", "Docker Desktop", "Postman"
    ]),
    "productivity": ("Productivity", "productive", [
        "Microsoft Word", "Microsoft Excel", "Microsoft PowerPoint", "Microsoft Outlook",
        "Google Docs", "Google Sheets", "Notion", "Obsidian", "Evernote", "OneNote",
        "Trello", "Asana", "Jira", "Confluence", "Slack", "Microsoft Teams", "Zoom",
        "Todoist", "Calendar"
    ]),
    "design": ("Design", "productive", [
        "Figma", "Sketch", "Adobe Photoshop", "Adobe Illustrator", "Adobe Premiere Pro",
        "GIMP", "Inkscape", "Blender"
    ]),
    "communication": ("Communication", "neutral", [
        "WhatsApp", "Telegram", "Signal", "Messenger", "WeChat", "LinkedIn",
        "Twitter", "Facebook", "Instagram"
    ]),
    "system": ("System", "neutral", [
        "File Explorer", "Finder", "Task Manager", "Activity Monitor",
        "System Preferences", "Settings", "Calculator", "Notepad", "Preview"
    ]),
    "browser": ("Browser", "neutral", [
        "Google Chrome", "Mozilla Firefox", "Safari", "Microsoft Edge", "Opera",
        "Brave", "Vivaldi"
    ]),
    "entertainment": ("Entertainment", "distracting", [
        "Netflix", "YouTube", "Twitch", "Spotify", "Apple Music", "VLC Media Player",
        "Steam", "Epic Games Launcher", "TikTok", "Reddit", "Pinterest"
    ]),
}

# Checked in order; the first matching keyword group wins
KEYWORD_PATTERNS: List[Tuple[str, ProductivityRating, float, str, List[str]]] = [
    ("Development", "productive", 0.8, "development", [
        "code", "studio", "ide", "editor", "git", "terminal", "console", "compiler",
        "debugger", "profiler", "docker", "kubernetes"
    ]),
    ("Entertainment", "distracting", 0.8, "gaming", [
        "game", "play", "steam", "launcher", "gaming", "arcade"
    ]),
    ("Entertainment", "distracting", 0.7, "media", [
        "player", "music", "video", "audio", "media", "streaming", "podcast", "movie"
    ]),
    ("Productivity", "productive", 0.8, "productivity", [
        "office", "word", "excel", "powerpoint", "outlook", "calendar", "mail",
        "document", "spreadsheet", "note", "task", "todo", "project"
    ]),
    ("Communication", "neutral", 0.7, "communication", [
        "chat", "message", "messenger", "call", "conference", "meeting"
    ]),
    ("Browser", "neutral", 0.6, "browser", [
        "browser", "chrome", "firefox", "safari", "edge", "opera"
    ]),
]

class AppCategorizer:
    """Suggests categories for apps that have not been categorized yet"""

    def __init__(self, store: AppCategoryStore):
        self.store = store
        self.known_apps: Dict[str, Tuple[str, ProductivityRating]] = {}
        for category, rating, apps in KNOWN_APPS.values():
            for app in apps:
                self.known_apps[app.lower()] = (category, rating)

    def get_suggestions(self, app_names: Iterable[str]) -> List[CategorySuggestion]:
        """Suggest categories for every app not already in the store"""
        categorized = {name.lower() for name in self.store.snapshot()}
        suggestions = []
        seen = set()
        for app_name in app_names:
            lower = app_name.lower()
            if lower in categorized or lower in seen:
                continue
            seen.add(lower)
            suggestions.append(self.suggest(app_name))
        return suggestions

    def suggest(self, app_name: str) -> CategorySuggestion:
        lower = app_name.lower()

        exact = self.known_apps.get(lower)
        if exact:
            return CategorySuggestion(app_name, exact[0], exact[1], 0.95, "Known application", True)

        for known, (category, rating) in self.known_apps.items():
            if known in lower or lower in known:
                return CategorySuggestion(app_name, category, rating, 0.7, f"Similar to {known}", True)

        for category, rating, confidence, label, keywords in KEYWORD_PATTERNS:
            if any(keyword in lower for keyword in keywords):
                return CategorySuggestion(
                    app_name, category, rating, confidence,
                    f"Contains {label}-related keywords", False
                )

        return CategorySuggestion(
            app_name, "Uncategorized", "neutral", 0.3,
            "Unknown application - manual review recommended", False
        )
