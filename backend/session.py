"""One user's live session: a frame goes in once and reaches every component"""
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional
import logging
import random
import time

from exercises import get_exercise
from game_engine import GamePhase, StressGameEngine
from games import GameDefinition
from landmarks import parse_frame
from metrics import MetricsCollector, metrics as global_metrics
from models import ExerciseFeedback, GameResult, SessionState
from resilience import ResilienceTracker, StreakTracker, resilience_score
from tracker import ExerciseSessionTracker


class FaceSession:
    """Wires the exercise tracker, the stress/game engine and the daily
    aggregates around a single latest-frame snapshot.

    Events (stress samples, game start/end, exercise completion) are passed
    to `on_event` as plain dicts so a transport can forward them.
    """

    def __init__(self, session_id: str, store,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.monotonic,
                 today: Callable[[], date] = date.today,
                 metrics: Optional[MetricsCollector] = None,
                 on_event: Optional[Callable[[Dict[str, Any]], None]] = None,
                 **engine_options):
        self.session_id = session_id
        self.store = store
        self.clock = clock
        self.today = today
        self.metrics = metrics or global_metrics
        self.on_event = on_event
        self.created_at = clock()
        self.last_active = self.created_at
        self.last_feedback: Optional[ExerciseFeedback] = None
        self.last_game_result: Optional[GameResult] = None
        self._pending_completion: Optional[str] = None

        self.tracker = ExerciseSessionTracker(
            store,
            on_exercise_complete=self._on_exercise_complete,
            today=today,
        )
        self.engine = StressGameEngine(
            rng=rng,
            clock=clock,
            on_stress_update=self._on_stress_update,
            on_game_start=self._on_game_start,
            on_game_end=self._on_game_end,
            **engine_options,
        )
        self.resilience = ResilienceTracker(store, today=today)
        self.streak = StreakTracker(store, today=today)
        # A streak can lapse while the app is closed; settle it on startup
        self.streak.update(self.tracker.exercise_done_today())

    def _emit(self, event_type: str, **payload):
        if self.on_event is None:
            return
        try:
            self.on_event({"type": event_type, **payload})
        except Exception as e:
            logging.error(f"Event delivery failed for {self.session_id}: {e}", exc_info=True)

    # Component callbacks

    def _on_stress_update(self, score: float):
        self.metrics.record_stress(score)
        self._emit("stress", stress=round(score, 3), trend=self.engine.history.trend())

    def _on_game_start(self, game: GameDefinition):
        self.metrics.record_game_start()
        self._emit("game_start", game=game.to_dict(), instance_id=self.engine.instance.instance_id)

    def _on_game_end(self, result: GameResult):
        self.last_game_result = result
        self.metrics.record_game_end(result.success)
        self.record_resilience()
        self._emit("game_end", result=result.model_dump(), stress=round(self.engine.current_stress, 3))

    def _on_exercise_complete(self, name: str):
        self.metrics.record_exercise_complete()
        # The tracker persists the completion right after this callback
        self._pending_completion = name

    # Operations

    def touch(self):
        self.last_active = self.clock()

    def process_frame(self, raw: Any) -> SessionState:
        """Parse one detector tick and feed the same snapshot to every component"""
        self.touch()
        started = time.perf_counter()
        frame = parse_frame(raw)

        self._pending_completion = None
        self.last_feedback = self.tracker.process_frame(frame)
        self.engine.update_frame(frame)
        self.advance_game()

        if self._pending_completion:
            count = self.tracker.exercises_today()
            streak = self.streak.update(True)
            self.record_resilience()
            self._emit("exercise_complete", exercise=self._pending_completion,
                       exercises_today=count, streak=streak.streak)
            self._pending_completion = None

        self.metrics.record_frame(frame is not None, (time.perf_counter() - started) * 1000)
        return self.state()

    def select_exercise(self, name: str) -> Dict[str, Any]:
        """Raises UnknownExerciseError for names outside the catalogue"""
        self.touch()
        self.tracker.select_exercise(name)
        self.last_feedback = None
        return get_exercise(name).to_dict()

    def sample_stress(self) -> Optional[float]:
        return self.engine.sample_stress()

    def tick(self):
        return self.engine.tick()

    def advance_game(self):
        """Tick a running game so clients without a timer still see it resolve and close"""
        if self.game_active:
            self.engine.tick()

    def close_game(self, instance_id: Optional[int] = None) -> Optional[GameResult]:
        self.touch()
        return self.engine.close_game(instance_id=instance_id)

    def record_resilience(self):
        return self.resilience.record(self.tracker.exercises_today(), self.engine.current_stress)

    @property
    def game_active(self) -> bool:
        return self.engine.phase in (GamePhase.ACTIVE, GamePhase.RESOLVED)

    def state(self, error: Optional[str] = None) -> SessionState:
        count = self.tracker.exercises_today()
        stress = self.engine.current_stress
        return SessionState(
            timestamp=datetime.now().isoformat(),
            session_id=self.session_id,
            face_visible=self.engine.face_visible,
            exercise=self.last_feedback.model_dump() if self.last_feedback else None,
            game=self.engine.snapshot().model_dump(),
            exercises_today=count,
            streak=self.streak.load().streak,
            resilience={
                "today": resilience_score(count, stress),
                "history": [r.model_dump() for r in self.resilience.last_n_days(7)],
            },
            summary=self.tracker.summary().model_dump(),
            error=error,
        )
