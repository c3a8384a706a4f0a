from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Hotel Real-Time Notifications"
    VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/v1"

    # Push server
    REALTIME_WS_URL: str = "ws://localhost:8080"
    PING_INTERVAL_SECONDS: float = 30.0
    RECONNECT_INITIAL_SECONDS: float = 5.0
    RECONNECT_MAX_SECONDS: float = 60.0
    RECONNECT_FACTOR: float = 2.0

    # PHP backend
    BACKEND_BASE_URL: str = "http://localhost/hotel-management/backend"
    BACKEND_TIMEOUT_SECONDS: float = 15.0

    # Session: token is optional, a session can also be started via POST /session
    AUTH_TOKEN: str | None = None
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 1

    # Notifications
    NOTIFICATION_LIMIT: int = 100
    BASE_CHANNELS: str = "admin"

    # CORS
    ALLOWED_ORIGINS: str = "*"

    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def cors_origins(self) -> list[str]:
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def base_channels(self) -> list[str]:
        return [c.strip() for c in self.BASE_CHANNELS.split(",") if c.strip()]


settings = Settings()
