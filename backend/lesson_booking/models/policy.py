"""
Policy and working-hours configuration models.

Both models are frozen: they are built once from settings at process start
and passed by value into every component.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class WorkingHoursConfig(BaseModel):
    """Instructor's daily working window, in the instructor's timezone."""

    model_config = ConfigDict(frozen=True)

    start_hour: int = Field(9, ge=0, le=23)
    end_hour: int = Field(21, ge=1, le=24)

    @model_validator(mode="after")
    def _check_order(self) -> "WorkingHoursConfig":
        if self.start_hour >= self.end_hour:
            raise ValueError(
                f"start_hour ({self.start_hour}) must be before end_hour ({self.end_hour})"
            )
        return self


class LessonPolicy(BaseModel):
    """Lesson length and booking rules."""

    model_config = ConfigDict(frozen=True)

    lesson_duration_minutes: int = Field(50, gt=0)
    buffer_minutes: int = Field(10, ge=0)
    slot_interval_minutes: int = Field(60, gt=0)
    min_advance_booking_hours: int = Field(24, ge=0)
    max_advance_booking_days: int = Field(30, ge=0)
    cancel_deadline_hours: int = Field(24, ge=0)
    modify_deadline_hours: int = Field(24, ge=0)
    max_modifications: int = Field(2, ge=0)
