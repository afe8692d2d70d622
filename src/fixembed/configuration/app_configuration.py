from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict, List, Optional
import yaml

from fixembed.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_DATABASE_PATH = "./data/fixembed_data.db"
DEFAULT_STATUSES = [
    "for Twitter links",
    "for Reddit links",
    "for Instagram links",
    "for Threads links",
    "for Pixiv links",
    "for Bluesky links",
]


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes typed
    shortcuts for every tunable the bot reads. Missing keys and malformed
    values fall back to the built-in defaults so a partial file is always usable.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping, ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    def _number(self, section: str, key: str, default: float) -> float:
        value = self._section(section).get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid %s.%s=%r, using %s", section, key, value, default)
            return default

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (which will be an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        Callers should not mutate it; use get(...) or the provided convenience
        properties instead.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def database_path(self) -> Path:
        """Location of the SQLite file holding channel states and guild settings."""
        value = self._section("database").get("path") or DEFAULT_DATABASE_PATH
        return Path(str(value)).resolve()

    @property
    def rate_limit_capacity(self) -> int:
        """Maximum outbound sends per rate limit window (default 5)."""
        return max(1, int(self._number("rate_limit", "capacity", 5)))

    @property
    def rate_limit_window(self) -> float:
        """Rate limit window length in seconds (default 1.0)."""
        value = self._number("rate_limit", "window_seconds", 1.0)
        return value if value > 0 else 1.0

    @property
    def send_timeout(self) -> Optional[float]:
        """Seconds a rewritten message may wait for a rate limit slot; None waits forever."""
        value = self._section("rate_limit").get("send_timeout_seconds")
        if value is None:
            return None
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid rate_limit.send_timeout_seconds=%r, waiting indefinitely", value)
            return None
        return timeout if timeout > 0 else None

    @property
    def write_retry_attempts(self) -> int:
        """Attempts for a durable write while SQLite reports busy/locked (default 5)."""
        return max(1, int(self._number("durable_writes", "retry_attempts", 5)))

    @property
    def write_retry_delay(self) -> float:
        """Fixed delay in seconds between durable write attempts (default 0.1)."""
        return max(0.0, self._number("durable_writes", "retry_delay_seconds", 0.1))

    @property
    def presence_statuses(self) -> List[str]:
        """Rotating "Watching ..." presence texts."""
        statuses = self._section("presence").get("statuses")
        if isinstance(statuses, list):
            cleaned = [str(status) for status in statuses if status]
            if cleaned:
                return cleaned
        return list(DEFAULT_STATUSES)

    @property
    def presence_interval(self) -> float:
        """Seconds between presence changes (default 60)."""
        value = self._number("presence", "interval_seconds", 60.0)
        return value if value > 0 else 60.0


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
