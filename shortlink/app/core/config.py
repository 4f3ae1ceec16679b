import re

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_BINDING_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # GitHub repository holding the rule documents
    github_token: str = ""
    github_owner: str = ""
    github_repo: str = ""
    github_branch: str = "main"
    github_api_base_url: str = "https://api.github.com"
    github_web_base_url: str = "https://github.com"
    github_user_agent: str = "shortlink-rule-store"

    # Public domain serving the short links (e.g. "s.example.com")
    base_domain: str = ""

    # Rule documents (path inside the repository, JS binding name)
    intermediate_rules_path: str = "js/rules_intermediate.js"
    intermediate_binding: str = "RULES_INTERMEDIATE"
    direct_rules_path: str = "js/rules_direct.js"
    direct_binding: str = "RULES_DIRECT"

    # HTTP client settings
    httpx_connect_timeout: float = 5.0  # Time to establish connection
    httpx_read_timeout: float = 15.0  # Time to read response data
    httpx_write_timeout: float = 15.0  # Time to send request data
    httpx_pool_timeout: float = 5.0  # Time to acquire connection from pool
    httpx_keepalive_expiry: float = 30.0
    httpx_max_connections: int = 20
    httpx_max_keepalive_connections: int = 10

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    @field_validator("intermediate_binding", "direct_binding")
    @classmethod
    def validate_binding_name(cls, v: str) -> str:
        """Binding names end up as `window.<name>` so they must be identifiers."""
        if not _BINDING_RE.match(v):
            raise ValueError(f"binding name must be a JavaScript identifier: {v!r}")
        return v

    @field_validator(
        "httpx_connect_timeout",
        "httpx_read_timeout",
        "httpx_write_timeout",
        "httpx_pool_timeout",
    )
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    @field_validator("httpx_max_connections", "httpx_max_keepalive_connections")
    @classmethod
    def validate_pool_size_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("pool size values must be at least 1")
        return v

    @property
    def store_configured(self) -> bool:
        """Whether enough GitHub settings are present to mutate rules."""
        return bool(self.github_token and self.github_owner and self.github_repo)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
