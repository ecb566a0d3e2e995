"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
registry runs out of the box against a local SQLite file.
"""

import os
from dataclasses import dataclass

STATE_BACKENDS = {"sqlite", "memory"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Asset Registry API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Path to the SQLite world state.  Relative paths are resolved
    # against the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "asset_registry.db")

    # ``sqlite`` persists to ``database_url``; ``memory`` keeps the world
    # state in process and loses it on restart.
    state_backend: str = os.getenv("STATE_BACKEND", "sqlite").lower()

    # Name of the caller attribute carrying the role.
    role_attribute: str = os.getenv("ROLE_ATTRIBUTE", "role")

    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = int(os.getenv("API_PORT", "3000"))

    def __post_init__(self) -> None:
        if self.state_backend not in STATE_BACKENDS:
            raise ValueError(
                f"Unknown STATE_BACKEND {self.state_backend!r}; expected one of {sorted(STATE_BACKENDS)}"
            )


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
