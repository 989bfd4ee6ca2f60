"""
Configuration management for tracksync.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
CACHE_FILE_NAME = "search_cache.json"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Config:
    """Configuration settings for the application."""

    # Application Settings
    log_level: str = "INFO"
    debug_api_calls: bool = False

    # Cache Configuration
    cache_enabled: bool = True
    cache_file: Optional[Path] = None

    # Search Configuration
    batch_size: int = 10
    batch_delay: float = 0.1
    search_limit: int = 5
    match_threshold: float = 0.5
    max_retries: int = 3
    retry_base_delay: float = 1.0

    # Quality Filtering
    min_quality_score: int = 50
    allow_low_confidence: bool = False
    remove_invalid: bool = True

    # Internal settings
    _project_root: Optional[Path] = field(default=None, init=False)

    def __post_init__(self) -> None:
        """Initialize derived settings."""
        self._project_root = self._find_project_root()
        if self.cache_file is None:
            self.cache_file = self.cache_dir / CACHE_FILE_NAME
        else:
            self.cache_file = Path(self.cache_file)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        cache_file = os.getenv("CACHE_FILE")
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            debug_api_calls=_env_bool("DEBUG_API_CALLS", "false"),
            cache_enabled=_env_bool("CACHE_ENABLED", "true"),
            cache_file=Path(cache_file) if cache_file else None,
            batch_size=int(os.getenv("BATCH_SIZE", "10")),
            batch_delay=float(os.getenv("BATCH_DELAY", "0.1")),
            search_limit=int(os.getenv("SEARCH_LIMIT", "5")),
            match_threshold=float(os.getenv("MATCH_THRESHOLD", "0.5")),
            max_retries=int(os.getenv("SEARCH_RETRY_COUNT", "3")),
            retry_base_delay=float(os.getenv("SEARCH_RETRY_DELAY", "1.0")),
            min_quality_score=int(os.getenv("MIN_QUALITY_SCORE", "50")),
            allow_low_confidence=_env_bool("ALLOW_LOW_CONFIDENCE", "false"),
            remove_invalid=_env_bool("REMOVE_INVALID", "true"),
        )

    @classmethod
    def from_dotenv(cls, env_file: Optional[Path] = None) -> "Config":
        """Create configuration from .env file."""
        if env_file:
            load_dotenv(env_file)
        else:
            # Try to find .env in project root
            project_root = cls._find_project_root()
            if project_root:
                env_file = project_root / ".env"
                if env_file.exists():
                    load_dotenv(env_file)

        return cls.from_env()

    @staticmethod
    def _find_project_root() -> Optional[Path]:
        """Find the project root directory."""
        current = Path.cwd()

        # Look for markers that indicate project root
        markers = [".git", "pyproject.toml", "setup.py", "requirements.txt"]

        for parent in [current] + list(current.parents):
            if any((parent / marker).exists() for marker in markers):
                return parent

        return current

    def setup_logging(self) -> None:
        """Set up logging configuration."""
        log_level = getattr(logging, self.log_level.upper(), logging.INFO)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        # Remove existing handlers
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        # Add debug logging for API calls if enabled
        if self.debug_api_calls:
            for name in ("requests", "urllib3", "tidalapi"):
                logging.getLogger(name).setLevel(logging.DEBUG)

    def validate(self) -> None:
        """Validate the configuration."""
        errors = []

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}")

        if self.batch_size < 1:
            errors.append("BATCH_SIZE must be >= 1")

        if self.batch_delay < 0:
            errors.append("BATCH_DELAY must be >= 0")

        if self.search_limit < 1:
            errors.append("SEARCH_LIMIT must be >= 1")

        if not 0 <= self.match_threshold <= 1:
            errors.append("MATCH_THRESHOLD must be between 0 and 1")

        if self.max_retries < 0:
            errors.append("SEARCH_RETRY_COUNT must be >= 0")

        if self.retry_base_delay < 0:
            errors.append("SEARCH_RETRY_DELAY must be >= 0")

        if not 0 <= self.min_quality_score <= 100:
            errors.append("MIN_QUALITY_SCORE must be between 0 and 100")

        if errors:
            raise ConfigurationError(f"Configuration errors: {', '.join(errors)}")

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        if self._project_root is None:
            raise ConfigurationError("Could not determine project root directory")
        return self._project_root

    @property
    def cache_dir(self) -> Path:
        """Get the cache directory."""
        return self.project_root / ".cache"

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary (excluding private fields)."""
        return {
            key: value
            for key, value in self.__dict__.items()
            if not key.startswith("_")
        }

    def __str__(self) -> str:
        return f"Config({self.to_dict()})"
