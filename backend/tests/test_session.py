"""Tests for the per-user session wiring"""
import pytest
import random
from datetime import date
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from exceptions import UnknownExerciseError
from metrics import MetricsCollector
from session import FaceSession
from store import MemoryStore
import synthetic_faces as faces

TODAY = date(2024, 6, 3)


class TestFaceSession:
    """Test cases for FaceSession"""

    def setup_method(self):
        self.now = 0.0
        self.events = []
        self.metrics = MetricsCollector(clock=lambda: self.now)
        self.session = FaceSession(
            "test",
            MemoryStore(),
            rng=random.Random(3),
            clock=lambda: self.now,
            today=lambda: TODAY,
            metrics=self.metrics,
            on_event=self.events.append,
            jitter=0,
            trigger_probability=1.0,
        )

    def test_frame_reaches_tracker_and_engine(self):
        state = self.session.process_frame(faces.jaw_dropped().to_list())
        assert state.face_visible
        assert state.exercise["exercise"] == "Jaw Dropper"
        assert state.exercise["success"]
        assert self.session.engine.latest_frame is not None
        assert self.metrics.frame_count == 1

    def test_malformed_frame_is_no_face(self):
        self.session.process_frame(faces.jaw_dropped().to_list())
        state = self.session.process_frame([{"x": 0.5, "y": 0.5}] * 10)
        assert not state.face_visible
        assert state.exercise is None
        assert self.session.tracker.success_streak == 0
        assert self.metrics.frames_without_face == 1

    def test_completion_updates_streak_and_resilience(self):
        for _ in range(15):
            state = self.session.process_frame(faces.jaw_dropped())
        assert state.exercises_today == 1
        assert state.streak == 1
        assert state.resilience["history"][-1]["date"] == "2024-06-03"
        assert state.resilience["history"][-1]["exercises"] == 1
        completions = [e for e in self.events if e["type"] == "exercise_complete"]
        assert completions == [{"type": "exercise_complete", "exercise": "Jaw Dropper",
                                "exercises_today": 1, "streak": 1}]

    def test_select_exercise(self):
        exercise = self.session.select_exercise("Cheek Puffer")
        assert exercise["name"] == "Cheek Puffer"
        assert self.session.state().summary == {"exerciseName": "Cheek Puffer", "progressPercent": 0}
        with pytest.raises(UnknownExerciseError):
            self.session.select_exercise("Ear Wiggler")

    def test_stress_sampling_starts_game(self):
        self.session.process_frame(faces.stressed_face())
        for i in range(5):
            self.now = i * 2.0
            self.session.sample_stress()
        assert self.session.game_active
        types = [e["type"] for e in self.events]
        assert types.count("stress") == 5
        assert "game_start" in types
        assert self.metrics.games_started == 1

    def test_game_end_is_recorded(self):
        self.session.process_frame(faces.stressed_face())
        for i in range(5):
            self.now = i * 2.0
            self.session.sample_stress()
        instance_id = self.session.engine.instance.instance_id
        result = self.session.close_game(instance_id=instance_id)
        assert not result.success
        assert self.session.last_game_result == result
        assert self.metrics.games_failed == 1
        assert any(e["type"] == "game_end" for e in self.events)
        assert not self.session.game_active

    def test_state_shape(self):
        state = self.session.state()
        assert state.session_id == "test"
        assert state.game["phase"] == "idle"
        assert state.resilience["today"] == 0
        assert state.error is None

    def test_event_errors_are_contained(self):
        def broken(event):
            raise RuntimeError("socket closed")

        self.session.on_event = broken
        self.session.process_frame(faces.neutral_face())
        assert self.session.sample_stress() is not None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
