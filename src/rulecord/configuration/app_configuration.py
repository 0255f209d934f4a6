from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from rulecord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_DATABASE_PATH = "./data/rulecord.db"
DEFAULT_FLAG_THRESHOLD = 3
DEFAULT_EXCERPT_LIMIT = 1024
DEFAULT_REGEX_CACHE_SIZE = 256
DEFAULT_NOTIFIER_TIMEOUT = 10.0
DEFAULT_LOG_LIMIT = 10


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed properties for the sections rulecord reads. Every property falls
    back to a built-in default when the file, the section, or the key is
    missing, so a bare checkout still runs.
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
                # Shared lock: other processes may read concurrently
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file, replace the cache and return the new mapping."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def database_path(self) -> Path:
        """Path of the SQLite database file."""
        value = self._section("database").get("path") or DEFAULT_DATABASE_PATH
        return Path(str(value)).resolve()

    @property
    def log_level(self) -> str:
        """Console log level name (DEBUG, INFO, ...)."""
        return str(self._section("logging").get("level") or "INFO")

    @property
    def default_flag_threshold(self) -> int:
        """Flag threshold given to newly registered guilds."""
        value = self._section("moderation").get("default_flag_threshold", DEFAULT_FLAG_THRESHOLD)
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid default_flag_threshold %r", value)
            return DEFAULT_FLAG_THRESHOLD

    @property
    def excerpt_limit(self) -> int:
        """Maximum characters of message content quoted in moderator notices."""
        value = self._section("moderation").get("excerpt_limit", DEFAULT_EXCERPT_LIMIT)
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return DEFAULT_EXCERPT_LIMIT

    @property
    def regex_cache_size(self) -> int:
        """Number of compiled regex rule patterns kept in memory."""
        value = self._section("moderation").get("regex_cache_size", DEFAULT_REGEX_CACHE_SIZE)
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return DEFAULT_REGEX_CACHE_SIZE

    @property
    def default_log_limit(self) -> int:
        """Number of audit entries returned by admin queries when no limit is given."""
        value = self._section("moderation").get("default_log_limit", DEFAULT_LOG_LIMIT)
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return DEFAULT_LOG_LIMIT

    @property
    def notifier_timeout_seconds(self) -> float:
        """Upper bound on a single outbound Discord call."""
        value = self._section("notifier").get("timeout_seconds", DEFAULT_NOTIFIER_TIMEOUT)
        try:
            return float(value)
        except (TypeError, ValueError):
            return DEFAULT_NOTIFIER_TIMEOUT


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
