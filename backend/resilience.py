"""Daily resilience scores and the day-over-day exercise streak"""
from datetime import date
from typing import Callable, List, Optional
import logging

from config import RESILIENCE_HISTORY_DAYS, RESILIENCE_STRESS_WEIGHT
from models import ResilienceRecord, StreakRecord
from store import read_json, write_json
from utils import clamp, days_between, iso_day, parse_day, yesterday_of

RESILIENCE_KEY = "resilience_data"
STREAK_KEY = "my_streak"


def resilience_score(exercise_count: int, stress: float, stress_weight: float = RESILIENCE_STRESS_WEIGHT) -> float:
    """clamp(0, 100, exercises * 10 - stress * K) with K = stress_weight"""
    return clamp(exercise_count * 10 - stress * stress_weight, 0, 100)


class ResilienceTracker:
    """One record per calendar day, newest RESILIENCE_HISTORY_DAYS kept"""

    def __init__(self, store, max_days: int = RESILIENCE_HISTORY_DAYS,
                 stress_weight: float = RESILIENCE_STRESS_WEIGHT,
                 today: Callable[[], date] = date.today):
        self.store = store
        self.max_days = max_days
        self.stress_weight = stress_weight
        self.today = today

    def history(self) -> List[ResilienceRecord]:
        raw = read_json(self.store, RESILIENCE_KEY, default=[])
        if not isinstance(raw, list):
            logging.warning("Resilience history is not a list, starting fresh")
            return []
        records = []
        for item in raw:
            try:
                records.append(ResilienceRecord(**item))
            except (TypeError, ValueError) as e:
                logging.warning(f"Skipping unreadable resilience record: {e}")
        return records

    def record(self, exercise_count: int, stress: float, day: Optional[date] = None) -> ResilienceRecord:
        """Upsert today's record and prune the series to the newest max_days"""
        key = iso_day(day or self.today())
        entry = ResilienceRecord(
            date=key,
            exercises=exercise_count,
            stress=round(stress, 3),
            resilience=resilience_score(exercise_count, stress, self.stress_weight),
        )

        records = [r for r in self.history() if r.date != key]
        records.append(entry)
        records.sort(key=lambda r: r.date)
        if len(records) > self.max_days:
            records = records[-self.max_days:]

        write_json(self.store, RESILIENCE_KEY, [r.model_dump() for r in records])
        return entry

    def last_n_days(self, n: int = 7) -> List[ResilienceRecord]:
        return self.history()[-n:]


class StreakTracker:
    """Consecutive days with at least one completed exercise.

    Only evaluated when update() runs; there is no background timer.
    """

    def __init__(self, store, today: Callable[[], date] = date.today):
        self.store = store
        self.today = today

    def load(self) -> StreakRecord:
        raw = read_json(self.store, STREAK_KEY)
        if not isinstance(raw, dict):
            return StreakRecord()
        try:
            return StreakRecord(**raw)
        except (TypeError, ValueError) as e:
            logging.warning(f"Ignoring unreadable streak record: {e}")
            return StreakRecord()

    def _save(self, record: StreakRecord):
        write_json(self.store, STREAK_KEY, record.model_dump())

    def update(self, exercise_done_today: bool, day: Optional[date] = None) -> StreakRecord:
        today = day or self.today()
        record = self.load()
        last = parse_day(record.lastExerciseDate)

        if exercise_done_today:
            if last == today:
                return record
            if (last is not None and last == yesterday_of(today)) or record.streak == 0:
                record = StreakRecord(streak=record.streak + 1, lastExerciseDate=iso_day(today))
            else:
                logging.info(f"Streak of {record.streak} broken, restarting at 1")
                record = StreakRecord(streak=1, lastExerciseDate=iso_day(today))
            self._save(record)
            return record

        if record.streak > 0 and (last is None or days_between(last, today) >= 2):
            logging.info(f"Streak of {record.streak} lapsed")
            record = StreakRecord(streak=0, lastExerciseDate=record.lastExerciseDate)
            self._save(record)
        return record
