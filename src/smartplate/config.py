"""
Runtime configuration and logging setup.

Settings are read from the environment (optionally via a .env file) once at
startup. Every value has a default so the package works offline with the
NullLLMProvider and the bundled recipe catalog.
"""

import os
import logging
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


@dataclass
class Settings:
    """Process-wide settings."""

    anthropic_api_key: Optional[str] = None
    use_null_llm: bool = False
    llm_model: str = "claude-sonnet-4-5"
    data_dir: str = "data"
    db_path: str = "data/smartplate.db"
    food_library_path: Optional[str] = None
    vision_base_url: Optional[str] = None
    vision_timeout: float = 30.0
    default_style: str = "Mediterranean"
    secret_key: str = "dev-secret-key-change-in-production"
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """Build settings from environment variables.

        Args:
            load_env_file: Load a .env file from the working directory first

        Environment Variables:
            ANTHROPIC_API_KEY: API key for live LLM suggestions
            USE_NULL_LLM: Set to "true" to force synthesized suggestions
            SMARTPLATE_LLM_MODEL: Model name for suggestion prompts
            SMARTPLATE_DATA_DIR: Directory for databases and logs
            SMARTPLATE_DB_PATH: SQLite file holding saved preferences
            SMARTPLATE_FOOD_LIBRARY: NDJSON food library for nutrition enrichment
            SMARTPLATE_VISION_URL: Base URL of the image analysis functions
            SMARTPLATE_VISION_TIMEOUT: Request timeout in seconds
            SMARTPLATE_DEFAULT_STYLE: Cold-start suggestion style
            FLASK_SECRET_KEY: Flask session secret
            SMARTPLATE_LOG_LEVEL: Root log level
            SMARTPLATE_LOG_DIR: Directory for the rotating log file
        """
        if load_env_file:
            load_dotenv()

        data_dir = os.environ.get("SMARTPLATE_DATA_DIR", "data")
        try:
            vision_timeout = float(os.environ.get("SMARTPLATE_VISION_TIMEOUT", "30"))
        except ValueError:
            logger.warning("Invalid SMARTPLATE_VISION_TIMEOUT, using 30s")
            vision_timeout = 30.0

        return cls(
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY") or None,
            use_null_llm=_env_flag("USE_NULL_LLM"),
            llm_model=os.environ.get("SMARTPLATE_LLM_MODEL", cls.llm_model),
            data_dir=data_dir,
            db_path=os.environ.get("SMARTPLATE_DB_PATH", os.path.join(data_dir, "smartplate.db")),
            food_library_path=os.environ.get("SMARTPLATE_FOOD_LIBRARY") or None,
            vision_base_url=os.environ.get("SMARTPLATE_VISION_URL") or None,
            vision_timeout=vision_timeout,
            default_style=os.environ.get("SMARTPLATE_DEFAULT_STYLE", cls.default_style),
            secret_key=os.environ.get("FLASK_SECRET_KEY", cls.secret_key),
            log_level=os.environ.get("SMARTPLATE_LOG_LEVEL", "INFO").upper(),
            log_dir=os.environ.get("SMARTPLATE_LOG_DIR") or None,
        )


def configure_logging(settings: Settings) -> None:
    """Send logs to the console and, when a log dir is set, a rotating file."""
    handlers = [logging.StreamHandler()]
    if settings.log_dir:
        os.makedirs(settings.log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                os.path.join(settings.log_dir, "smartplate.log"),
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5
            )
        )

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
