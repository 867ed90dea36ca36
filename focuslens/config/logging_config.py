import logging
from focuslens.config.settings import settings

def setup_logging():
    """Configure logging for the application"""
    # Create logs directory if it doesn't exist
    settings.validate_paths()
    
    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(settings.LOG_DIR / "focuslens.log"),
            logging.StreamHandler()  # Also log to console
        ]
    )
    
    logger = logging.getLogger(__name__)
    logger.info("Logging initialized")
