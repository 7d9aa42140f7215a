"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.
    
    Attributes:
        database_url: SQLAlchemy connection string
        log_level: Root logging level
        cors_origins: Origins allowed by the CORS middleware
        
        # Supply settings
        default_days_supply: Days of supply assumed when a prescription has none set
        
        # Goal settings
        first_weekday: First day of the week (0 = Monday ... 6 = Sunday)
        streak_max_periods: Maximum number of periods walked when computing a streak
    """
    # Database settings
    database_url: str = "sqlite:///./medtracker.db"
    
    # Logging settings
    log_level: str = "INFO"
    
    # Frontend settings
    cors_origins: List[str] = ["http://localhost:3000"]
    
    # Supply settings
    default_days_supply: float = 30
    
    # Goal settings
    first_weekday: int = 0
    streak_max_periods: int = 365

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
