"""Unit tests for the exercise session tracker"""
import pytest
import json
from datetime import date
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from exceptions import UnknownExerciseError
from store import MemoryStore
from tracker import DAILY_PROGRESS_KEY, LAST_EXERCISE_DATE_KEY, ExerciseSessionTracker
import synthetic_faces as faces

TODAY = date(2024, 3, 14)


class TestExerciseSessionTracker:
    """Test cases for streaks, completion and the daily tally"""

    def setup_method(self):
        self.store = MemoryStore()
        self.completed = []
        self.selected = []
        self.progress = []
        self.day = TODAY
        self.tracker = ExerciseSessionTracker(
            self.store,
            on_exercise_complete=self.completed.append,
            on_exercise_selection_changed=self.selected.append,
            on_progress_update=self.progress.append,
            today=lambda: self.day,
        )

    def feed(self, frame, times):
        return [self.tracker.process_frame(frame) for _ in range(times)]

    def test_defaults_to_jaw_dropper(self):
        assert self.tracker.selected_exercise == "Jaw Dropper"
        assert self.tracker.progress_percent == 0

    def test_fifteen_good_frames_complete_once(self):
        results = self.feed(faces.jaw_dropped(), 15)
        assert self.completed == ["Jaw Dropper"]
        assert results[-1].completed
        assert not any(r.completed for r in results[:-1])
        assert self.tracker.success_streak == 0
        assert self.tracker.exercises_today() == 1

    def test_failure_resets_streak(self):
        self.feed(faces.jaw_dropped(), 14)
        assert self.tracker.success_streak == 14
        feedback = self.tracker.process_frame(faces.neutral_face())
        assert not feedback.success
        assert feedback.message == "Widen it, vibe rookie!"
        assert self.tracker.success_streak == 0
        assert self.completed == []

    def test_progress_callback(self):
        self.feed(faces.jaw_dropped(), 3)
        assert self.progress == [7, 13, 20]
        assert self.tracker.summary().model_dump() == {"exerciseName": "Jaw Dropper", "progressPercent": 20}

    def test_progress_resets_after_completion(self):
        self.feed(faces.jaw_dropped(), 15)
        assert self.progress[-1] == 0
        assert max(self.progress) == 100

    def test_no_face_cancels_streak(self):
        self.feed(faces.jaw_dropped(), 5)
        assert self.tracker.process_frame(None) is None
        assert self.tracker.success_streak == 0
        assert self.tracker.last_result is None
        assert self.progress[-1] == 0

    def test_select_exercise(self):
        self.feed(faces.jaw_dropped(), 5)
        self.tracker.select_exercise("Lip Pucker")
        assert self.selected == ["Lip Pucker"]
        assert self.tracker.success_streak == 0
        assert self.tracker.feedback == ""
        feedback = self.tracker.process_frame(faces.lips_puckered())
        assert feedback.exercise == "Lip Pucker"
        assert feedback.success

    def test_select_unknown_exercise(self):
        with pytest.raises(UnknownExerciseError):
            self.tracker.select_exercise("Ear Wiggler")
        assert self.tracker.selected_exercise == "Jaw Dropper"
        assert self.selected == []

    def test_repeat_completion_is_idempotent(self):
        self.feed(faces.jaw_dropped(), 30)
        assert self.completed == ["Jaw Dropper", "Jaw Dropper"]
        assert self.tracker.completed_today() == ["Jaw Dropper"]
        assert self.tracker.exercises_today() == 1

    def test_distinct_exercises_count(self):
        self.feed(faces.jaw_dropped(), 15)
        self.tracker.select_exercise("Chin Jutter")
        self.feed(faces.chin_jutted(), 15)
        assert self.tracker.exercises_today() == 2
        assert self.tracker.exercise_done_today()

    def test_daily_cap(self):
        tracker = ExerciseSessionTracker(self.store, daily_cap=2, today=lambda: self.day)
        for name in ("Jaw Dropper", "Chin Jutter", "Lip Pucker"):
            tracker.mark_complete(name)
        assert tracker.exercises_today() == 2

    def test_tally_resets_on_new_day(self):
        self.tracker.mark_complete("Jaw Dropper")
        self.day = date(2024, 3, 15)
        assert self.tracker.exercises_today() == 0
        assert not self.tracker.exercise_done_today()

    def test_persisted_records(self):
        self.tracker.mark_complete("Brow Lifter")
        stored = json.loads(self.store.get(DAILY_PROGRESS_KEY))
        assert stored == {"date": "2024-03-14", "completed": ["Brow Lifter"]}
        assert json.loads(self.store.get(LAST_EXERCISE_DATE_KEY)) == "2024-03-14"

    def test_corrupt_progress_is_ignored(self):
        self.store.set(DAILY_PROGRESS_KEY, "{not json")
        assert self.tracker.exercises_today() == 0
        assert self.tracker.mark_complete("Jaw Dropper") == 1

    def test_notify_progress_throttle(self):
        assert self.tracker.should_notify_progress()
        assert not self.tracker.should_notify_progress()
        self.feed(faces.jaw_dropped(), 1)   # 7%
        assert not self.tracker.should_notify_progress()
        self.feed(faces.jaw_dropped(), 1)   # 13%
        assert self.tracker.should_notify_progress()
        self.tracker.select_exercise("Lip Pucker")
        assert self.tracker.should_notify_progress()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
