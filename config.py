from __future__ import annotations

from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from validation import BookingRules


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="", case_sensitive=False, extra="ignore")

    app_env: str = "development"

    # Scheduling
    facility_tz: str = "Europe/Madrid"
    min_duration: int = Field(default=30, gt=0)
    max_duration: int = Field(default=180, gt=0)
    duration_step: int = Field(default=15, gt=0)
    open_hour: int = Field(default=8, ge=0, le=23)
    close_hour: int = Field(default=21, ge=1, le=24)
    lock_timeout_seconds: Optional[float] = Field(default=None, gt=0)

    # Storage; unset keeps everything in memory
    data_path: Optional[str] = None

    # Admin surface
    admin_user: str = ""
    admin_pass: str = ""
    admin_auth_realm: str = "Reservas Admin"
    force_admin_auth: bool = False
    admin_email: str = ""

    # Outgoing mail
    smtp_host: str = ""
    smtp_port: int = 465
    smtp_user: str = ""
    smtp_from: str = ""
    smtp_timeout_seconds: float = 10.0

    log_level: str = "INFO"

    @field_validator("facility_tz")
    @classmethod
    def must_be_known_zone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown time zone: {v}") from exc
        return v

    @model_validator(mode="after")
    def check_ranges(self) -> "Settings":
        if self.min_duration > self.max_duration:
            raise ValueError("min_duration must not exceed max_duration")
        if self.open_hour >= self.close_hour:
            raise ValueError("open_hour must be before close_hour")
        return self

    @property
    def admin_auth_enabled(self) -> bool:
        return bool(
            self.admin_user
            and self.admin_pass
            and (self.app_env == "production" or self.force_admin_auth)
        )

    @property
    def booking_rules(self) -> BookingRules:
        return BookingRules(
            min_duration=self.min_duration,
            max_duration=self.max_duration,
            duration_step=self.duration_step,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
