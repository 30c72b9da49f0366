"""Centralized configuration — all env vars in one place."""

import os

DEFAULT_CORS_ORIGINS = ",".join(
    [
        "http://127.0.0.1:5500",
        "http://localhost:5500",
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ]
)


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
            if origin.strip()
        ]
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")
        self.port: int = int(os.getenv("PORT", "3000"))

        # Overpass (OpenStreetMap) upstream
        self.overpass_url: str = os.getenv("OVERPASS_URL", "https://overpass-api.de/api/interpreter")
        self.overpass_timeout_sec: float = float(os.getenv("OVERPASS_TIMEOUT_SEC", "30"))
        self.overpass_user_agent: str = os.getenv("OVERPASS_USER_AGENT", "apres-ski-finder/1.0")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty when all is well)."""
        problems = []
        if not self.overpass_url.startswith(("http://", "https://")):
            problems.append(f"OVERPASS_URL is not an http(s) URL: {self.overpass_url}")
        if self.overpass_timeout_sec <= 0:
            problems.append("OVERPASS_TIMEOUT_SEC must be positive")
        if not self.cors_origins:
            problems.append("CORS_ORIGINS is empty; browsers will be refused")
        return problems


settings = Settings()
