# /smart-lms-backend/app/core/config.py

"""
Central configuration for the Smart LMS backend.

All values are read from environment variables (a local `.env` file is loaded
first for development). Every other module imports its settings from here
instead of calling `os.getenv` directly.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# --- Runtime Environment ---
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- Database ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./smart_lms.db")

# --- Authentication ---
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# --- CORS ---
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:4200").split(",")
    if origin.strip()
]

# --- Attendance Rules ---
# A student whose first join is later than scheduled start + grace is late.
LATE_GRACE_PERIOD_MINUTES = int(os.getenv("LATE_GRACE_PERIOD_MINUTES", "5"))
# Closed records below this percentage are marked partial.
PARTIAL_ATTENDANCE_THRESHOLD = float(os.getenv("PARTIAL_ATTENDANCE_THRESHOLD", "50"))
# How early a lecturer may start a scheduled meeting.
EARLY_START_MINUTES = int(os.getenv("EARLY_START_MINUTES", "15"))

# --- Engagement Analytics ---
ALERT_WINDOW_MINUTES = int(os.getenv("ALERT_WINDOW_MINUTES", "5"))
ENGAGEMENT_WINDOW_MINUTES = int(os.getenv("ENGAGEMENT_WINDOW_MINUTES", "2"))
ENGAGED_THRESHOLD = float(os.getenv("ENGAGED_THRESHOLD", "0.7"))

# --- Seeder ---
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@smartlms.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
