"""Per-session exercise tracking: streaks, completion and the daily tally"""
from datetime import date
from typing import Callable, List, Optional
import logging

from config import DAILY_EXERCISE_CAP, EXERCISE_COMPLETION_STREAK, PROGRESS_NOTIFY_STEP
from exercises import DEFAULT_EXERCISE, get_exercise
from landmarks import LandmarkFrame
from models import DailyProgress, ExerciseFeedback, ProgressSummary
from store import read_json, write_json
from utils import iso_day

DAILY_PROGRESS_KEY = "exercises_today"
LAST_EXERCISE_DATE_KEY = "last_exercise_date"


class ExerciseSessionTracker:
    """Tracks one selected exercise at a time.

    Completion means EXERCISE_COMPLETION_STREAK consecutive successful frame
    evaluations. The daily tally counts distinct exercises completed today,
    capped at DAILY_EXERCISE_CAP, so repeating an exercise never inflates it.
    """

    def __init__(self, store,
                 on_exercise_complete: Optional[Callable[[str], None]] = None,
                 on_exercise_selection_changed: Optional[Callable[[str], None]] = None,
                 on_progress_update: Optional[Callable[[int], None]] = None,
                 completion_streak: int = EXERCISE_COMPLETION_STREAK,
                 daily_cap: int = DAILY_EXERCISE_CAP,
                 today: Callable[[], date] = date.today):
        self.store = store
        self.on_exercise_complete = on_exercise_complete
        self.on_exercise_selection_changed = on_exercise_selection_changed
        self.on_progress_update = on_progress_update
        self.completion_streak = completion_streak
        self.daily_cap = daily_cap
        self.today = today

        self.selected_exercise = DEFAULT_EXERCISE
        self.success_streak = 0
        self.last_result: Optional[bool] = None
        self.feedback = ""
        self._reported_percent = 0
        self._notified_percent: Optional[int] = None
        self._notified_exercise: Optional[str] = None

    @property
    def progress_percent(self) -> int:
        return min(100, round(self.success_streak / self.completion_streak * 100))

    def _report_progress(self, percent: int):
        if percent == self._reported_percent:
            return
        self._reported_percent = percent
        if self.on_progress_update:
            self.on_progress_update(percent)

    def select_exercise(self, name: str):
        """Switch exercise; raises UnknownExerciseError for names not in the catalogue"""
        exercise = get_exercise(name)
        self.selected_exercise = exercise.name
        self.success_streak = 0
        self.last_result = None
        self.feedback = ""
        self._report_progress(0)
        logging.info(f"Exercise selected: {exercise.name}")
        if self.on_exercise_selection_changed:
            self.on_exercise_selection_changed(exercise.name)

    def cancel(self):
        """Drop the current streak, e.g. when the face is lost"""
        self.success_streak = 0
        self.last_result = None
        self._report_progress(0)

    def process_frame(self, frame: Optional[LandmarkFrame]) -> Optional[ExerciseFeedback]:
        """Evaluate one frame; no face cancels the streak and evaluates nothing"""
        if frame is None:
            self.cancel()
            return None

        exercise = get_exercise(self.selected_exercise)
        check = exercise.evaluate(frame)
        self.last_result = check.passed

        if check.passed:
            self.success_streak += 1
            self.feedback = exercise.success_message
        else:
            self.success_streak = 0
            self.feedback = exercise.failure_message

        percent = self.progress_percent
        self._report_progress(percent)

        completed = False
        if self.success_streak >= self.completion_streak:
            completed = True
            self.success_streak = 0
            logging.info(f"Exercise complete: {exercise.name}")
            if self.on_exercise_complete:
                self.on_exercise_complete(exercise.name)
            self.mark_complete(exercise.name)
            self._report_progress(0)

        return ExerciseFeedback(
            exercise=exercise.name,
            success=check.passed,
            progress=round(check.progress, 3),
            message=self.feedback,
            streak=self.success_streak,
            progress_percent=percent,
            completed=completed,
        )

    def _load_daily(self) -> DailyProgress:
        today = iso_day(self.today())
        raw = read_json(self.store, DAILY_PROGRESS_KEY)
        if isinstance(raw, dict):
            try:
                record = DailyProgress(**raw)
            except (TypeError, ValueError) as e:
                logging.warning(f"Ignoring unreadable daily progress: {e}")
                record = None
            if record is not None and record.date == today:
                return record
        return DailyProgress(date=today, completed=[])

    def mark_complete(self, name: Optional[str] = None) -> int:
        """Record an exercise as done today and return the distinct count"""
        exercise = get_exercise(name or self.selected_exercise)
        record = self._load_daily()
        if exercise.name not in record.completed and len(record.completed) < self.daily_cap:
            record.completed.append(exercise.name)
            write_json(self.store, DAILY_PROGRESS_KEY, record.model_dump())
        write_json(self.store, LAST_EXERCISE_DATE_KEY, record.date)
        return len(record.completed)

    def completed_today(self) -> List[str]:
        return list(self._load_daily().completed)

    def exercises_today(self) -> int:
        return min(self.daily_cap, len(self._load_daily().completed))

    def exercise_done_today(self) -> bool:
        return self.exercises_today() > 0

    def summary(self) -> ProgressSummary:
        return ProgressSummary(exerciseName=self.selected_exercise, progressPercent=self.progress_percent)

    def should_notify_progress(self) -> bool:
        """Whether the assistant should hear about progress now.

        True on an exercise change or once progress has moved by at least
        PROGRESS_NOTIFY_STEP points since the last notification.
        """
        percent = self.progress_percent
        if self._notified_exercise != self.selected_exercise:
            self._notified_exercise = self.selected_exercise
            self._notified_percent = percent
            return True
        if abs(percent - (self._notified_percent or 0)) >= PROGRESS_NOTIFY_STEP:
            self._notified_percent = percent
            return True
        return False
