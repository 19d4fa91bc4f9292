"""
Runtime configuration from the environment.

    SPINWHEEL_ENV         development | production (default development);
                          production hides the interactive API docs
    SPINWHEEL_DATA_DIR    directory for the JSON store (default ~/.spinwheel)
    SPINWHEEL_LOG_LEVEL   logging level name (default INFO)
    ALLOWED_ORIGINS       comma-separated CORS origins (default *)

Wheel behaviour (spin duration, direction, ...) is not configured here;
it lives in the persisted Settings record.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import logging
import os


@dataclass
class AppConfig:
    env: str = "development"
    data_dir: Path = field(default_factory=lambda: Path.home() / ".spinwheel")
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        """Production hides the interactive API docs."""
        return self.env == "production"

    @classmethod
    def from_env(cls) -> AppConfig:
        data_dir = os.getenv("SPINWHEEL_DATA_DIR")
        return cls(
            env=os.getenv("SPINWHEEL_ENV", "development"),
            data_dir=Path(data_dir).expanduser() if data_dir else Path.home() / ".spinwheel",
            log_level=os.getenv("SPINWHEEL_LOG_LEVEL", "INFO").upper(),
            allowed_origins=[
                origin.strip()
                for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")
                if origin.strip()
            ],
        )


def configure_logging(level: str = "INFO"):
    """Set up root logging for the CLI and the API server."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
