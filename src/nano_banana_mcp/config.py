"""
Runtime configuration: .env loading, environment settings and logging setup.
"""
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError


DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_OUTPUT_DIR = "."
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}


def load_dotenv(env_path: Path | str | None = None) -> None:
    """Load environment variables from a .env file.

    Variables that are already set in the environment are left untouched.

    Args:
        env_path: Path to .env file. If None, uses .env in the current directory.
    """
    path = Path(env_path) if env_path is not None else Path.cwd() / ".env"
    if not path.exists():
        return

    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                if key and key not in os.environ:
                    os.environ[key] = value


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup."""

    api_key: str
    image_model: str = DEFAULT_IMAGE_MODEL
    text_model: str = DEFAULT_TEXT_MODEL
    output_dir: str = DEFAULT_OUTPUT_DIR
    log_level: str = DEFAULT_LOG_LEVEL
    no_ssl_verify: bool = False

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ

        api_key = env.get("GEMINI_API_KEY", "").strip()
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY environment variable is required")

        return cls(
            api_key=api_key,
            image_model=env.get("NANO_BANANA_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
            text_model=env.get("NANO_BANANA_TEXT_MODEL") or DEFAULT_TEXT_MODEL,
            output_dir=env.get("NANO_BANANA_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR,
            log_level=(env.get("NANO_BANANA_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            no_ssl_verify=env.get("GEMINI_NO_SSL_VERIFY", "").strip().lower() in _TRUTHY,
        )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Send log records to stderr; stdout belongs to the stdio transport."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

