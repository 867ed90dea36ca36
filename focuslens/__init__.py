"""
FocusLens - Productivity and focus analytics over desktop activity records
"""

__version__ = "0.1.0"

from .services.analytics import ProductivityAnalytics
from .services.categories import AppCategorizer, AppCategoryStore
from .services.database import DatabaseManager
from .services.focus import AdvancedFocusDetector
from .services.insights import AutomatedInsightGenerator
from .services.monitor import SystemResourceMonitor
from .services.productivity import RealTimeProductivityCalculator, TrendCache
from .services.session import WorkSessionManager
from .models.activity import ActivityFilter, ActivityRecord, AppCategory

__all__ = [
    'ProductivityAnalytics',
    'AppCategorizer',
    'AppCategoryStore',
    'DatabaseManager',
    'AdvancedFocusDetector',
    'AutomatedInsightGenerator',
    'SystemResourceMonitor',
    'RealTimeProductivityCalculator',
    'TrendCache',
    'WorkSessionManager',
    'ActivityFilter',
    'ActivityRecord',
    'AppCategory',
]
