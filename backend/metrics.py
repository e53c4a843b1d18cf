"""Metrics collection and monitoring for the FaceVibe backend"""
from typing import Dict, Any, Optional
from collections import deque, defaultdict
from datetime import datetime
import time

from config import NO_FRAME_TIMEOUT_SECONDS


class MetricsCollector:
    """Collect and track metrics for monitoring"""
    def __init__(self, no_frame_timeout: float = NO_FRAME_TIMEOUT_SECONDS, clock=time.monotonic):
        self.no_frame_timeout = no_frame_timeout
        self.clock = clock
        self.request_count = 0
        self.error_count = 0
        self.frame_count = 0
        self.frames_without_face = 0
        self.stress_samples = 0
        self.games_started = 0
        self.games_succeeded = 0
        self.games_failed = 0
        self.exercises_completed = 0
        self.error_types: Dict[str, int] = defaultdict(int)
        self.frame_processing_times: deque = deque(maxlen=100)
        self.detection_times: deque = deque(maxlen=100)
        self.stress_values: deque = deque(maxlen=100)
        self.last_frame_at: Optional[float] = None
        self.start_time = datetime.now()

    def record_request(self):
        self.request_count += 1

    def record_error(self, error_type: str = "unknown"):
        """Record an error"""
        self.error_count += 1
        self.error_types[error_type] += 1

    def record_frame(self, face_visible: bool, time_ms: float = 0.0):
        """Record one processed frame and how long evaluation took"""
        self.frame_count += 1
        if not face_visible:
            self.frames_without_face += 1
        self.frame_processing_times.append(time_ms)
        self.last_frame_at = self.clock()

    def record_detection_time(self, time_ms: float):
        self.detection_times.append(time_ms)

    def record_stress(self, score: float):
        self.stress_samples += 1
        self.stress_values.append(score)

    def record_game_start(self):
        self.games_started += 1

    def record_game_end(self, success: bool):
        if success:
            self.games_succeeded += 1
        else:
            self.games_failed += 1

    def record_exercise_complete(self):
        self.exercises_completed += 1

    def seconds_since_last_frame(self) -> Optional[float]:
        if self.last_frame_at is None:
            return None
        return self.clock() - self.last_frame_at

    def get_stats(self) -> Dict[str, Any]:
        """Get comprehensive statistics"""
        uptime = (datetime.now() - self.start_time).total_seconds()
        avg_frame_time = sum(self.frame_processing_times) / len(self.frame_processing_times) if self.frame_processing_times else 0
        avg_detection_time = sum(self.detection_times) / len(self.detection_times) if self.detection_times else 0
        avg_stress = sum(self.stress_values) / len(self.stress_values) if self.stress_values else 0
        face_rate = ((self.frame_count - self.frames_without_face) / self.frame_count * 100) if self.frame_count > 0 else 0
        since_last = self.seconds_since_last_frame()

        return {
            "uptime_seconds": uptime,
            "total_requests": self.request_count,
            "failed_requests": self.error_count,
            "frames_processed": self.frame_count,
            "frames_without_face": self.frames_without_face,
            "face_visible_percent": round(face_rate, 2),
            "avg_frame_processing_time_ms": round(avg_frame_time, 2),
            "avg_detection_time_ms": round(avg_detection_time, 2),
            "stress_samples": self.stress_samples,
            "avg_stress": round(avg_stress, 3),
            "games_started": self.games_started,
            "games_succeeded": self.games_succeeded,
            "games_failed": self.games_failed,
            "exercises_completed": self.exercises_completed,
            "seconds_since_last_frame": round(since_last, 2) if since_last is not None else None,
            "error_types": dict(self.error_types),
        }

    def get_health(self) -> Dict[str, Any]:
        """Get health status.

        "no_frames" means nothing has arrived from the detector for longer
        than the timeout (or ever), which usually means a camera or
        permission problem on the client.
        """
        stats = self.get_stats()
        since_last = self.seconds_since_last_frame()
        if since_last is None or since_last > self.no_frame_timeout:
            status = "no_frames"
        elif self.request_count > 0 and self.error_count / self.request_count >= 0.1:
            status = "degraded"
        else:
            status = "healthy"

        return {
            "status": status,
            "uptime_seconds": stats["uptime_seconds"],
            "frames_processed": stats["frames_processed"],
            "seconds_since_last_frame": stats["seconds_since_last_frame"],
            "failed_requests": stats["failed_requests"],
        }

    def reset(self):
        """Reset all metrics"""
        self.request_count = 0
        self.error_count = 0
        self.frame_count = 0
        self.frames_without_face = 0
        self.stress_samples = 0
        self.games_started = 0
        self.games_succeeded = 0
        self.games_failed = 0
        self.exercises_completed = 0
        self.error_types.clear()
        self.frame_processing_times.clear()
        self.detection_times.clear()
        self.stress_values.clear()
        self.last_frame_at = None
        self.start_time = datetime.now()

# Global metrics collector
metrics = MetricsCollector()
