# backend/lesson_booking/core/config.py
"""
Runtime configuration.

``Settings`` reads the environment (and ``.env``) once. Components never read
it directly: ``Settings.to_engine_config()`` produces a frozen ``EngineConfig``
that is passed into every service at construction time.
"""

from functools import lru_cache
import logging
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from ..models.policy import LessonPolicy, WorkingHoursConfig
from .constants import (
    DEFAULT_BOOKING_ID_PREFIX,
    DEFAULT_INSTRUCTOR_TIMEZONE,
    DEFAULT_STUDENT_TIMEZONE,
)
from .messages import SUPPORTED_LOCALES

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    """Immutable engine configuration shared by all components."""

    model_config = ConfigDict(frozen=True)

    instructor_timezone: str = DEFAULT_INSTRUCTOR_TIMEZONE
    default_student_timezone: str = DEFAULT_STUDENT_TIMEZONE
    working_hours: WorkingHoursConfig = Field(default_factory=WorkingHoursConfig)
    policy: LessonPolicy = Field(default_factory=LessonPolicy)
    booking_id_prefix: str = DEFAULT_BOOKING_ID_PREFIX
    locale: str = "zh-TW"

    @field_validator("instructor_timezone", "default_student_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {value}")
        return value


class Settings(BaseSettings):
    # Instructor / student zones
    instructor_timezone: str = Field(default=DEFAULT_INSTRUCTOR_TIMEZONE, alias="INSTRUCTOR_TIMEZONE")
    default_student_timezone: str = Field(
        default=DEFAULT_STUDENT_TIMEZONE, alias="DEFAULT_STUDENT_TIMEZONE"
    )

    # Working hours (instructor timezone)
    working_hours_start: int = Field(default=9, alias="WORKING_HOURS_START")
    working_hours_end: int = Field(default=21, alias="WORKING_HOURS_END")

    # Lesson policy
    lesson_duration_minutes: int = Field(default=50, alias="LESSON_DURATION_MINUTES")
    buffer_minutes: int = Field(default=10, alias="BUFFER_MINUTES")
    slot_interval_minutes: int = Field(default=60, alias="SLOT_INTERVAL_MINUTES")
    min_advance_booking_hours: int = Field(default=24, alias="MIN_ADVANCE_BOOKING_HOURS")
    max_advance_booking_days: int = Field(default=30, alias="MAX_ADVANCE_BOOKING_DAYS")
    cancel_deadline_hours: int = Field(default=24, alias="CANCEL_DEADLINE_HOURS")
    modify_deadline_hours: int = Field(default=24, alias="MODIFY_DEADLINE_HOURS")
    max_modifications: int = Field(default=2, alias="MAX_MODIFICATIONS")

    booking_id_prefix: str = Field(default=DEFAULT_BOOKING_ID_PREFIX, alias="BOOKING_ID_PREFIX")
    message_locale: str = Field(default="zh-TW", alias="MESSAGE_LOCALE")

    # Calendar collaborator
    calendar_backend: Literal["google", "memory"] = Field(default="google", alias="CALENDAR_BACKEND")
    google_calendar_id: Optional[str] = Field(default=None, alias="GOOGLE_CALENDAR_ID")
    google_service_account_email: Optional[str] = Field(
        default=None, alias="GOOGLE_SERVICE_ACCOUNT_EMAIL"
    )
    google_private_key: Optional[SecretStr] = Field(default=None, alias="GOOGLE_PRIVATE_KEY")
    google_service_account_file: Optional[str] = Field(
        default=None, alias="GOOGLE_SERVICE_ACCOUNT_FILE"
    )

    # Slot claims
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    redis_namespace: str = Field(default="mzk", alias="REDIS_NAMESPACE")
    slot_claim_ttl_seconds: int = Field(default=30, alias="SLOT_CLAIM_TTL_SECONDS")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("message_locale")
    @classmethod
    def _supported_locale(cls, value: str) -> str:
        if value not in SUPPORTED_LOCALES:
            logger.warning("Unsupported MESSAGE_LOCALE=%s; falling back to en", value)
            return "en"
        return value

    @field_validator("google_private_key", mode="before")
    @classmethod
    def _unescape_private_key(cls, value: object) -> object:
        # Keys pasted into env files usually carry literal "\n" sequences
        if isinstance(value, str):
            return value.replace("\\n", "\n")
        return value

    def to_engine_config(self) -> EngineConfig:
        return EngineConfig(
            instructor_timezone=self.instructor_timezone,
            default_student_timezone=self.default_student_timezone,
            working_hours=WorkingHoursConfig(
                start_hour=self.working_hours_start,
                end_hour=self.working_hours_end,
            ),
            policy=LessonPolicy(
                lesson_duration_minutes=self.lesson_duration_minutes,
                buffer_minutes=self.buffer_minutes,
                slot_interval_minutes=self.slot_interval_minutes,
                min_advance_booking_hours=self.min_advance_booking_hours,
                max_advance_booking_days=self.max_advance_booking_days,
                cancel_deadline_hours=self.cancel_deadline_hours,
                modify_deadline_hours=self.modify_deadline_hours,
                max_modifications=self.max_modifications,
            ),
            booking_id_prefix=self.booking_id_prefix,
            locale=self.message_locale,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
