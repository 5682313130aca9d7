"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import DaySchedule, SessionDurations, SessionType, parse_hhmm


def _validate_hhmm(value: str) -> str:
    parse_hhmm(value)
    return value.strip()


class OpeningHours(BaseModel):
    """Opening and closing time for one weekday."""
    open: str = "09:00"
    close: str = "18:00"

    @field_validator("open", "close")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate time is HH:MM."""
        return _validate_hhmm(v)

    @model_validator(mode="after")
    def validate_order(self) -> "OpeningHours":
        """Ensure the day opens before it closes."""
        if parse_hhmm(self.close) <= parse_hhmm(self.open):
            raise ValueError(f"close ({self.close}) must be later than open ({self.open})")
        return self

    def open_minutes(self) -> int:
        return parse_hhmm(self.open)

    def close_minutes(self) -> int:
        return parse_hhmm(self.close)


class LunchBreak(BaseModel):
    """Daily lunch break during which no session may take place."""
    start: str = "12:30"
    end: str = "13:30"

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _validate_hhmm(v)


class SessionSettings(BaseModel):
    """Durations and price of one session type."""
    display_minutes: int
    pause_minutes: int
    price: Decimal

    @field_validator("display_minutes")
    @classmethod
    def validate_display(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("display_minutes must be greater than zero")
        return value

    @field_validator("pause_minutes")
    @classmethod
    def validate_pause(cls, value: int) -> int:
        if value < 0:
            raise ValueError("pause_minutes cannot be negative")
        return value

    @field_validator("price")
    @classmethod
    def validate_price(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("price cannot be negative")
        return value

    def durations(self) -> SessionDurations:
        return SessionDurations(display_minutes=self.display_minutes, pause_minutes=self.pause_minutes)


class SessionsConfig(BaseModel):
    """Settings for both session types."""
    discovery: SessionSettings = Field(
        default_factory=lambda: SessionSettings(display_minutes=75, pause_minutes=15, price=Decimal("55"))
    )
    regular: SessionSettings = Field(
        default_factory=lambda: SessionSettings(display_minutes=45, pause_minutes=20, price=Decimal("45"))
    )

    def for_type(self, session_type: SessionType) -> SessionSettings:
        if SessionType(session_type) is SessionType.DISCOVERY:
            return self.discovery
        return self.regular


def _default_business_hours() -> Dict[int, Optional[OpeningHours]]:
    # 0=Monday, 6=Sunday
    return {
        0: OpeningHours(open="09:00", close="18:00"),
        1: OpeningHours(open="09:00", close="18:00"),
        2: OpeningHours(open="09:00", close="18:00"),
        3: None,
        4: OpeningHours(open="09:00", close="18:00"),
        5: OpeningHours(open="10:00", close="17:00"),
        6: None,
    }


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Paris"
    business_hours: Dict[int, Optional[OpeningHours]] = Field(default_factory=_default_business_hours)
    lunch_break: LunchBreak = Field(default_factory=LunchBreak)
    first_slot_time: str = "09:00"
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)
    loyalty_sessions_required: int = 9
    bookings_file: Optional[Path] = None
    promos_file: Optional[Path] = None
    promo_usage_file: Optional[Path] = None

    @field_validator("business_hours")
    @classmethod
    def validate_weekdays(cls, value: Dict[int, Optional[OpeningHours]]) -> Dict[int, Optional[OpeningHours]]:
        """Ensure weekdays are in valid range."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"business_hours weekdays must be between 0 and 6, got {invalid_days}")
        return value

    @field_validator("first_slot_time")
    @classmethod
    def validate_first_slot(cls, v: str) -> str:
        return _validate_hhmm(v)

    @field_validator("loyalty_sessions_required")
    @classmethod
    def validate_loyalty(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("loyalty_sessions_required must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_schedules(self) -> "AppConfig":
        """Every open weekday must yield a consistent day schedule."""
        for weekday, hours in self.business_hours.items():
            if hours is not None:
                self._build_schedule(hours)
        return self

    def hours_for(self, day: date) -> OpeningHours | None:
        """Opening hours for a date, None when closed."""
        return self.business_hours.get(day.weekday())

    def is_day_open(self, day: date) -> bool:
        return self.hours_for(day) is not None

    def schedule_for(self, day: date) -> DaySchedule | None:
        """
        Build the day schedule for a date.

        The first slot starts at the later of the opening time and the
        configured first slot time. Returns None on closed days.
        """
        hours = self.hours_for(day)
        if hours is None:
            return None
        return self._build_schedule(hours)

    def _build_schedule(self, hours: OpeningHours) -> DaySchedule:
        return DaySchedule(
            day_start_minutes=max(hours.open_minutes(), parse_hhmm(self.first_slot_time)),
            day_end_minutes=hours.close_minutes(),
            lunch_start_minutes=parse_hhmm(self.lunch_break.start),
            lunch_end_minutes=parse_hhmm(self.lunch_break.end),
            discovery=self.sessions.discovery.durations(),
            regular=self.sessions.regular.durations(),
        )

    def prices(self) -> Dict[SessionType, Decimal]:
        return {
            SessionType.DISCOVERY: self.sessions.discovery.price,
            SessionType.REGULAR: self.sessions.regular.price,
        }

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Data files are relative to the config file
        base = config_path.parent
        for name in ("bookings_file", "promos_file", "promo_usage_file"):
            path = getattr(config, name)
            if path is not None and not path.is_absolute():
                setattr(config, name, base / path)

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_file: Path | None = None) -> AppConfig:
    """
    Load the configuration, falling back to built-in defaults when no
    config file exists and none was requested explicitly.
    """
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()
