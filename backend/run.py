#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Uses the in-memory calendar unless CALENDAR_BACKEND is set explicitly.
"""
import os

import uvicorn

os.environ.setdefault("CALENDAR_BACKEND", "memory")

if __name__ == "__main__":
    uvicorn.run("lesson_booking.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
