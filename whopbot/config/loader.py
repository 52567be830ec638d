"""Configuration loading."""

from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from whopbot.config.schema import Config


def load_config(env_file: Path | None = None) -> Config:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional dotenv file overriding the default ``.env``.

    Returns:
        The validated configuration.
    """
    try:
        if env_file is not None:
            return Config(_env_file=env_file)
        return Config()
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise


def require_credentials(config: Config) -> None:
    """Raise if the credentials needed to connect are missing."""
    missing = [
        name for name, value in (
            ("WHOP_API_KEY", config.api_key),
            ("WHOP_AGENT_USER_ID", config.agent_user_id),
        )
        if not value
    ]
    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )
