from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """
    Application settings and configuration management.
    Loads environment variables from .env file.
    """

    # ============ App Configuration ============
    API_TITLE: str = "HRMS Portal"
    API_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # ============ Server Configuration ============
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # ============ Backend API Configuration ============
    BACKEND_URL: str = "https://hrms-1-fmzs.onrender.com"
    """Host of the HR backend this portal talks to"""

    API_PREFIX: str = "/api"
    """Path prefix of the backend REST API"""

    REQUEST_TIMEOUT: float = 30.0
    """Timeout in seconds for backend requests"""

    # ============ Storage Configuration ============
    STORAGE_DATABASE_URL: str = "sqlite:///./hrms_portal_storage.db"
    """Database holding the per-browser persisted session storage"""

    BROWSER_COOKIE_NAME: str = "hrms_browser"
    """Cookie identifying a browser's storage"""

    # ============ Session Configuration ============
    TOKEN_EXPIRY_BUFFER_MS: int = 5000
    """Tokens are treated as expired this many milliseconds before exp"""

    TOKEN_CHECK_INTERVAL: int = 60
    """Interval in seconds between periodic token expiry checks"""

    class Config:
        env_file = ".env"
        """Load environment variables from .env file"""

        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def API_URL(self) -> str:
        return f"{self.BACKEND_URL.rstrip('/')}{self.API_PREFIX}"

# Create global settings instance
settings = Settings()
