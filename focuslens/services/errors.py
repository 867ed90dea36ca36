"""Common error handling for all services"""

class ServiceError(Exception):
    """Base exception for all service errors"""
    pass

class DatabaseError(ServiceError):
    """Base exception for database-related errors"""
    pass

class AnalyticsError(ServiceError):
    """Base exception for analytics computation errors"""
    pass

class EmptySessionError(AnalyticsError):
    """Raised when a work session is built from zero activities"""
    pass

class ConfigError(ServiceError):
    """Base exception for configuration errors"""
    pass
