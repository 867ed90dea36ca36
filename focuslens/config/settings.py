from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    """Application settings with validation"""
    
    # Analytics Configuration
    TREND_CACHE_TTL_SECONDS: int = 3600
    MONITORING_INTERVAL_SECONDS: int = 30
    DISTRACTION_THRESHOLD_MINUTES: int = 5
    
    # Path Configuration
    BASE_DIR: Path = Path(__file__).parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    LOG_DIR: Path = BASE_DIR / "logs"
    DEFAULT_DB_PATH: Path = BASE_DIR / "focuslens.db"
    
    # Integration Configuration
    WEBHOOK_URL: Optional[str] = None
    WEBHOOK_TIMEOUT_SECONDS: float = 5.0
    
    # Retention Configuration
    DATA_RETENTION_DAYS: int = 90
    
    # Development Configuration
    DEBUG: bool = False
    ENV: str = "production"
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )
    
    def validate_paths(self) -> None:
        """Ensure all required paths exist"""
        for path in [self.DATA_DIR, self.LOG_DIR]:
            path.mkdir(parents=True, exist_ok=True)

settings = Settings()
