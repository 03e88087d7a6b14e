"""
Environment variable management with .env file support.

Recognized variables:

    POSSAGA_IDEMPOTENCY_RETENTION_SECONDS   how long outcomes are replayed
    POSSAGA_REDIS_URL                       use RedisOutcomeStore when set
    POSSAGA_OUTCOME_KEY_PREFIX              Redis key prefix
    POSSAGA_METRICS                         true (in-process counters), false, or prometheus
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


class EnvManager:
    """
    Manages environment variables for possaga deployments.

    Example:
        >>> env = EnvManager()
        >>> env.load()  # Loads .env if exists
        >>> redis_url = env.get("POSSAGA_REDIS_URL")
    """

    def __init__(self, project_root: Path | str | None = None, auto_load: bool = True):
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._loaded = False

        if auto_load:
            self.load()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self, env_file: str | Path | None = None, override: bool = False) -> bool:
        """
        Load environment variables from .env file.

        Args:
            env_file: Path to .env file (defaults to .env in project root)
            override: Whether to override existing environment variables

        Returns:
            True if .env file was loaded, False otherwise
        """
        env_file = self.project_root / ".env" if env_file is None else Path(env_file)

        if not env_file.exists():
            return False

        load_dotenv(env_file, override=override)
        self._loaded = True
        return True

    def get(self, key: str, default: str | None = None, required: bool = False) -> str | None:
        """
        Get an environment variable value.

        Raises:
            ValueError: If required=True and variable not found
        """
        value = os.environ.get(key, default)

        if required and value is None:
            msg = f"Required environment variable not set: {key}"
            raise ValueError(msg)

        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get environment variable as boolean."""
        value = (self.get(key) or "").lower()
        if value in ("true", "1", "yes", "on"):
            return True
        if value in ("false", "0", "no", "off"):
            return False
        return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get environment variable as float."""
        try:
            return float(self.get(key, str(default)))  # type: ignore[arg-type]
        except (ValueError, TypeError):
            return default
