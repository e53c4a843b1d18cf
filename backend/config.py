"""Configuration settings for the FaceVibe backend"""
import os
from typing import Dict, Any

# Landmark frames
LANDMARK_COUNT = 468  # Face mesh points per frame (iris points are dropped)

# Exercise tracking
EXERCISE_COMPLETION_STREAK = int(os.getenv("EXERCISE_COMPLETION_STREAK", "15"))  # Consecutive good frames
DAILY_EXERCISE_CAP = int(os.getenv("DAILY_EXERCISE_CAP", "10"))
PROGRESS_NOTIFY_STEP = int(os.getenv("PROGRESS_NOTIFY_STEP", "10"))  # Percent change before assistant is notified

# Stress estimation
STRESS_JITTER = float(os.getenv("STRESS_JITTER", "0.05"))  # Share of the score replaced by noise
NEUTRAL_STRESS = 0.5  # Returned when no face is available
STRESS_HISTORY_SIZE = int(os.getenv("STRESS_HISTORY_SIZE", "30"))
STRESS_TREND_DELTA = float(os.getenv("STRESS_TREND_DELTA", "0.05"))

# Stress sampling and game triggering
STRESS_SAMPLE_INTERVAL_SECONDS = float(os.getenv("STRESS_SAMPLE_INTERVAL_SECONDS", "2.0"))
GAME_TICK_INTERVAL_SECONDS = float(os.getenv("GAME_TICK_INTERVAL_SECONDS", "0.05"))  # 20 Hz
HIGH_STRESS_THRESHOLD = float(os.getenv("HIGH_STRESS_THRESHOLD", "0.7"))
EXTREME_STRESS_THRESHOLD = float(os.getenv("EXTREME_STRESS_THRESHOLD", "0.9"))
TRAILING_SAMPLES = int(os.getenv("TRAILING_SAMPLES", "5"))
GAME_COOLDOWN_SECONDS = float(os.getenv("GAME_COOLDOWN_SECONDS", "60"))
GAME_TRIGGER_PROBABILITY = float(os.getenv("GAME_TRIGGER_PROBABILITY", "0.5"))
RESULT_DWELL_SECONDS = float(os.getenv("RESULT_DWELL_SECONDS", "3.0"))
STRESS_RELIEF_DECREMENT = float(os.getenv("STRESS_RELIEF_DECREMENT", "0.2"))

# Resilience
RESILIENCE_STRESS_WEIGHT = float(os.getenv("RESILIENCE_STRESS_WEIGHT", "50"))  # K in count*10 - stress*K
RESILIENCE_HISTORY_DAYS = int(os.getenv("RESILIENCE_HISTORY_DAYS", "30"))

# Persistence
STORE_PATH = os.getenv("STORE_PATH", "")  # Empty keeps everything in memory
# In-memory store only. 0 keeps every key; a positive cap evicts the least
# recently used keys, and with them users' streaks and resilience history.
MAX_STORE_KEYS = int(os.getenv("MAX_STORE_KEYS", "0"))

# Detector health
NO_FRAME_TIMEOUT_SECONDS = float(os.getenv("NO_FRAME_TIMEOUT_SECONDS", "5"))
MAX_IMAGE_SIZE = int(os.getenv("MAX_IMAGE_SIZE", "640"))  # Max image dimension before detection

# Session management
SESSION_TIMEOUT_SECONDS = int(os.getenv("SESSION_TIMEOUT_SECONDS", "3600"))  # 1 hour
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "100"))

# API configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Dict[str, Any]:
    """Get all configuration as a dictionary"""
    return {
        "exercise_completion_streak": EXERCISE_COMPLETION_STREAK,
        "daily_exercise_cap": DAILY_EXERCISE_CAP,
        "progress_notify_step": PROGRESS_NOTIFY_STEP,
        "stress_jitter": STRESS_JITTER,
        "stress_history_size": STRESS_HISTORY_SIZE,
        "stress_sample_interval_seconds": STRESS_SAMPLE_INTERVAL_SECONDS,
        "game_tick_interval_seconds": GAME_TICK_INTERVAL_SECONDS,
        "high_stress_threshold": HIGH_STRESS_THRESHOLD,
        "extreme_stress_threshold": EXTREME_STRESS_THRESHOLD,
        "trailing_samples": TRAILING_SAMPLES,
        "game_cooldown_seconds": GAME_COOLDOWN_SECONDS,
        "game_trigger_probability": GAME_TRIGGER_PROBABILITY,
        "result_dwell_seconds": RESULT_DWELL_SECONDS,
        "stress_relief_decrement": STRESS_RELIEF_DECREMENT,
        "resilience_stress_weight": RESILIENCE_STRESS_WEIGHT,
        "resilience_history_days": RESILIENCE_HISTORY_DAYS,
        "no_frame_timeout_seconds": NO_FRAME_TIMEOUT_SECONDS,
        "session_timeout_seconds": SESSION_TIMEOUT_SECONDS,
        "max_sessions": MAX_SESSIONS,
    }
