# backend/lesson_booking/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import calendar, health

__all__ = ["calendar", "health"]
