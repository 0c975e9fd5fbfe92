# famboard runtime settings
# Override via config.yaml (or $FAMBOARD_CONFIG) and FAMBOARD_* environment variables.

import logging
import os
from dataclasses import dataclass, fields
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .schema import GroupBy, TimeScope

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent / "config.yaml"

# Integer fields and the range each must fall in.
INT_FIELDS = {
    "port": (1, 65535),
    "week_starts_on": (0, 6),
    "task_lookback_days": (0, 3650),
    "event_lookback_days": (0, 3650),
}


@dataclass
class Settings:
    """Runtime configuration for the board service and API."""

    # Storage
    db_path: str = "~/.local/share/famboard/famboard.db"

    # API
    api_secret: str = ""
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    # Board behavior
    timezone: str = ""               # IANA name, e.g. "America/Los_Angeles"; empty = system offset
    week_starts_on: int = 6          # Python weekday: Monday=0 ... Sunday=6
    task_lookback_days: int = 30     # overdue tasks fetched before the scope start
    event_lookback_days: int = 1     # past events fetched before today
    default_group_by: str = "time"
    default_time_scope: str = "week"

    @property
    def group_by(self) -> GroupBy:
        return GroupBy.from_str(self.default_group_by)

    @property
    def time_scope(self) -> TimeScope:
        return TimeScope.from_str(self.default_time_scope)

    @property
    def tz(self) -> tzinfo:
        """Household timezone. Only a named zone follows daylight-saving changes."""
        if self.timezone:
            return ZoneInfo(self.timezone)
        return datetime.now().astimezone().tzinfo

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def _coerce_ints(self) -> None:
        defaults = {f.name: f.default for f in fields(self)}
        for name, (low, high) in INT_FIELDS.items():
            raw = getattr(self, name)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                value = None
            if isinstance(raw, bool) or value is None or not low <= value <= high:
                logger.warning(f"{name}={raw!r} is not an integer in {low}..{high}, using {defaults[name]}")
                value = defaults[name]
            setattr(self, name, value)

    def _check_timezone(self) -> None:
        if not self.timezone:
            return
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            logger.warning(f"Unknown timezone {self.timezone!r}, using the system offset: {e}")
            self.timezone = ""

    def resolve(self) -> "Settings":
        """Apply environment overrides, expand paths and validate values."""
        self.db_path = os.environ.get("FAMBOARD_DB", self.db_path)
        self.api_secret = os.environ.get("FAMBOARD_API_SECRET", self.api_secret)
        self.log_level = os.environ.get("FAMBOARD_LOG_LEVEL", self.log_level).upper()
        self.timezone = str(os.environ.get("FAMBOARD_TIMEZONE", self.timezone) or "").strip()
        self.db_path = str(Path(self.db_path).expanduser())
        self._coerce_ints()
        self._check_timezone()
        return self

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Settings":
        """Load settings from YAML, falling back to defaults."""
        cfg_path = Path(path or os.environ.get("FAMBOARD_CONFIG") or CONFIG_PATH)
        known = {f.name for f in fields(cls)}
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if k in known})
            except (OSError, yaml.YAMLError, TypeError, AttributeError) as e:
                logger.warning(f"Could not read {cfg_path}, using defaults: {e}")
                cfg = cls()
        else:
            cfg = cls()
        return cfg.resolve()
