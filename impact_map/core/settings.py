"""
Core settings and environment variables for the Impact Map service.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """
    
    # Application
    APP_NAME: str = "Impact Map"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    
    # CORS - Frontend URLs allowed to access this API (comma-separated)
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173"
    
    # Firebase/Firestore (issue store)
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    ISSUES_COLLECTION: str = "issues"
    ISSUE_FETCH_LIMIT: int = 500
    
    # Mock DB mode for local development without Firebase credentials
    USE_MOCK_DB: bool = False
    MOCK_DB_PATH: Optional[str] = "./mock_db.json"  # None keeps the mock purely in memory
    
    # Map engine
    # - Threshold and render margin are in normalized units (plane is 0..100)
    # - Paddings are in degrees
    # - Non-positive paddings would break the min < max bounds invariant
    MAP_CLUSTER_THRESHOLD: float = Field(default=8.0, gt=0)
    MAP_GLOBAL_PADDING: float = Field(default=0.02, gt=0)
    MAP_ZOOM_PADDING: float = Field(default=0.005, gt=0)
    MAP_RENDER_MARGIN: float = Field(default=5.0, ge=0)
    MAP_MAX_SESSIONS: int = Field(default=500, gt=0)
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins_list(self):
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
