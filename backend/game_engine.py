"""Stress sampling and the mini-game state machine.

Phases:
    IDLE      no game; stress is sampled periodically
    AWAITING  sustained high stress outside the cooldown; each sample rolls
              the launch gate until a game starts or stress qualifies no more
    ACTIVE    a game is running and its validator runs on every tick
    RESOLVED  the result is on screen for RESULT_DWELL_SECONDS

Time comes from an injectable clock and randomness from an injectable
random.Random so that tests can drive the engine deterministically. Tick and
close calls may carry the instance id they were scheduled for; a call for a
superseded instance does nothing.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional
import itertools
import logging
import random
import time

from config import (EXTREME_STRESS_THRESHOLD, GAME_COOLDOWN_SECONDS, GAME_TRIGGER_PROBABILITY,
                    HIGH_STRESS_THRESHOLD, RESULT_DWELL_SECONDS, STRESS_HISTORY_SIZE, STRESS_JITTER,
                    STRESS_RELIEF_DECREMENT, TRAILING_SAMPLES)
from games import GAMES, GameDefinition, GameScratch, candidate_games
from landmarks import LandmarkFrame
from models import GameResult, GameSnapshot
from stress import StressHistory, estimate_stress, stress_level


class GamePhase(str, Enum):
    IDLE = "idle"
    AWAITING = "awaiting"
    ACTIVE = "active"
    RESOLVED = "resolved"


@dataclass
class GameInstance:
    instance_id: int
    game: GameDefinition
    start_time: float
    scratch: GameScratch
    requirement_met: bool = False
    progress: float = 0.0
    success: Optional[bool] = None
    resolved_at: Optional[float] = None


class StressGameEngine:
    def __init__(self, games: Optional[List[GameDefinition]] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.monotonic,
                 on_stress_update: Optional[Callable[[float], None]] = None,
                 on_game_start: Optional[Callable[[GameDefinition], None]] = None,
                 on_game_end: Optional[Callable[[GameResult], None]] = None,
                 high_threshold: float = HIGH_STRESS_THRESHOLD,
                 extreme_threshold: float = EXTREME_STRESS_THRESHOLD,
                 trailing_samples: int = TRAILING_SAMPLES,
                 cooldown_seconds: float = GAME_COOLDOWN_SECONDS,
                 trigger_probability: float = GAME_TRIGGER_PROBABILITY,
                 dwell_seconds: float = RESULT_DWELL_SECONDS,
                 relief_decrement: float = STRESS_RELIEF_DECREMENT,
                 jitter: float = STRESS_JITTER,
                 history_size: int = STRESS_HISTORY_SIZE):
        self.games = list(games) if games is not None else list(GAMES)
        self.rng = rng or random.Random()
        self.clock = clock
        self.on_stress_update = on_stress_update
        self.on_game_start = on_game_start
        self.on_game_end = on_game_end
        self.high_threshold = high_threshold
        self.extreme_threshold = extreme_threshold
        self.trailing_samples = trailing_samples
        self.cooldown_seconds = cooldown_seconds
        self.trigger_probability = trigger_probability
        self.dwell_seconds = dwell_seconds
        self.relief_decrement = relief_decrement
        self.jitter = jitter

        self.phase = GamePhase.IDLE
        self.current_stress = 0.0
        self.history = StressHistory(history_size)
        self.latest_frame: Optional[LandmarkFrame] = None
        self.instance: Optional[GameInstance] = None
        self.last_game_end_time: Optional[float] = None
        self.games_started = 0
        self._ids = itertools.count(1)

    def _now(self, now: Optional[float]) -> float:
        return self.clock() if now is None else now

    @property
    def face_visible(self) -> bool:
        return self.latest_frame is not None

    def update_frame(self, frame: Optional[LandmarkFrame]):
        """Keep the latest frame snapshot; losing the face drops the met requirement at once"""
        self.latest_frame = frame
        if frame is None and self.instance is not None and self.phase == GamePhase.ACTIVE:
            self.instance.requirement_met = False
            # Movement is measured between consecutive visible frames only
            self.instance.scratch.forget_positions()

    # Stress sampling and triggering

    def sample_stress(self, now: Optional[float] = None) -> Optional[float]:
        """Take one stress sample from the latest frame; skipped without a face"""
        now = self._now(now)
        frame = self.latest_frame
        if frame is None:
            return None

        score = estimate_stress(frame, rng=self.rng, jitter=self.jitter)
        self.current_stress = score
        self.history.append(score)
        if self.on_stress_update:
            self.on_stress_update(score)

        self.evaluate_trigger(now)
        return score

    def cooldown_remaining(self, now: Optional[float] = None) -> float:
        if self.last_game_end_time is None:
            return 0.0
        elapsed = self._now(now) - self.last_game_end_time
        return max(0.0, self.cooldown_seconds - elapsed)

    def _qualifies(self, now: float) -> bool:
        return (
            self.face_visible
            and self.current_stress > self.high_threshold
            and self.history.sustained_above(self.high_threshold, self.trailing_samples)
            and self.cooldown_remaining(now) <= 0
        )

    def evaluate_trigger(self, now: Optional[float] = None) -> Optional[GameInstance]:
        """Launch a game if stress has been high long enough and the gate passes"""
        if self.phase not in (GamePhase.IDLE, GamePhase.AWAITING):
            return None
        now = self._now(now)

        if not self._qualifies(now):
            if self.phase == GamePhase.AWAITING:
                logging.debug("Stress no longer qualifies for a game")
            self.phase = GamePhase.IDLE
            return None

        self.phase = GamePhase.AWAITING
        if self.rng.random() >= self.trigger_probability:
            return None

        candidates = candidate_games(self.games, self.current_stress, self.extreme_threshold)
        game = self.rng.choice(candidates)
        return self.start_game(game, now)

    # Game lifecycle

    def start_game(self, game: GameDefinition, now: Optional[float] = None) -> GameInstance:
        now = self._now(now)
        if self.instance is not None:
            self.instance.scratch.clear()

        instance_id = next(self._ids)
        self.instance = GameInstance(
            instance_id=instance_id,
            game=game,
            start_time=now,
            scratch=GameScratch(instance_id),
        )
        self.phase = GamePhase.ACTIVE
        self.games_started += 1
        logging.info(f"Game started: {game.id} (instance {instance_id}, stress {self.current_stress:.2f})")
        if self.on_game_start:
            self.on_game_start(game)
        return self.instance

    def _is_stale(self, instance_id: Optional[int]) -> bool:
        if instance_id is None:
            return False
        return self.instance is None or self.instance.instance_id != instance_id

    def tick(self, now: Optional[float] = None, instance_id: Optional[int] = None) -> GameSnapshot:
        """Advance the running game: progress, validation, resolution, dwell"""
        now = self._now(now)
        if self._is_stale(instance_id):
            logging.debug(f"Ignoring tick for superseded game instance {instance_id}")
            return self.snapshot()

        instance = self.instance
        if self.phase == GamePhase.ACTIVE and instance is not None:
            elapsed = now - instance.start_time
            duration = instance.game.duration_seconds
            instance.progress = min(100.0, elapsed / duration * 100) if duration > 0 else 100.0

            if instance.progress < 100:
                frame = self.latest_frame
                if frame is None:
                    instance.requirement_met = False
                else:
                    instance.requirement_met = bool(instance.game.validate(frame, elapsed * 1000, instance.scratch))
            else:
                self._resolve(now)

        elif self.phase == GamePhase.RESOLVED and instance is not None:
            if now - instance.resolved_at >= self.dwell_seconds:
                self.close_game(now)

        return self.snapshot()

    def _resolve(self, now: float):
        instance = self.instance
        instance.progress = 100.0
        instance.success = instance.requirement_met
        instance.resolved_at = now
        instance.scratch.clear()
        self.phase = GamePhase.RESOLVED
        logging.info(f"Game resolved: {instance.game.id} success={instance.success}")

    def close_game(self, now: Optional[float] = None, instance_id: Optional[int] = None) -> Optional[GameResult]:
        """End the current game; closing one still in play counts as a failure"""
        now = self._now(now)
        if self._is_stale(instance_id):
            logging.debug(f"Ignoring close for superseded game instance {instance_id}")
            return None
        instance = self.instance
        if instance is None or self.phase not in (GamePhase.ACTIVE, GamePhase.RESOLVED):
            return None

        success = bool(instance.success) if self.phase == GamePhase.RESOLVED else False
        game = instance.game
        result = GameResult(
            game_id=game.id,
            name=game.name,
            success=success,
            message=game.success_message if success else game.failure_message,
            instance_id=instance.instance_id,
        )

        instance.scratch.clear()
        self.last_game_end_time = now
        if success:
            self.current_stress = max(0.0, self.current_stress - self.relief_decrement)
        self.instance = None
        self.phase = GamePhase.IDLE
        logging.info(f"Game closed: {game.id} success={success}, cooldown {self.cooldown_seconds}s")

        if self.on_game_end:
            self.on_game_end(result)
        return result

    def snapshot(self) -> GameSnapshot:
        instance = self.instance
        data = {
            "phase": self.phase.value,
            "stress": round(self.current_stress, 3),
            "stress_level": stress_level(self.current_stress),
            "trend": self.history.trend(),
            "face_visible": self.face_visible,
        }
        if instance is not None:
            game = instance.game
            data.update(
                game_id=game.id,
                game_name=game.name,
                instructions=game.instructions,
                instance_id=instance.instance_id,
                progress=round(instance.progress, 1),
                requirement_met=instance.requirement_met,
                success=instance.success,
            )
            if instance.success is not None:
                data["message"] = game.success_message if instance.success else game.failure_message
        return GameSnapshot(**data)
