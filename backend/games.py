"""Stress-relief mini-games and their validators.

A game validator sees the latest frame, the milliseconds since the game
started and the GameScratch owned by the running game instance. Validators
that need history (oscillation counts, stillness) keep it only in that
scratch, which the engine replaces on every start and clears on every end.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import features as fx
from exceptions import UnknownGameError
from exercises import check_cheek_puffer, check_jaw_dropper, check_lip_pucker, check_smiley_stretch, check_brow_lifter
from landmarks import FaceLandmark as L, LandmarkFrame

BREATH_CYCLE_MS = 4000  # 2s in with the jaw open, 2s out with it closed
EYES_CLOSED_MAX = 0.01
JIGGLE_MOVE_MIN = 0.02
JIGGLES_REQUIRED = 10
FLARE_MOVE_MIN = 0.005
FLARES_REQUIRED = 5
FREEZE_MOVE_MAX = 0.005
FREEZE_POINTS = (L.NOSE_TIP, L.CHIN, L.LEFT_EYE_TOP, L.RIGHT_EYE_TOP)

DIFFICULTIES = ("easy", "medium", "hard")


class GameScratch:
    """Short-lived memory belonging to exactly one game instance"""

    def __init__(self, instance_id: int = 0):
        self.instance_id = instance_id
        self._data: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any):
        self._data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def clear(self):
        self._data.clear()

    def forget_positions(self):
        """Drop the last-seen positions; counts survive"""
        for key in [k for k in self._data if k.startswith("prev_")]:
            del self._data[key]


Validator = Callable[[LandmarkFrame, float, GameScratch], bool]


@dataclass(frozen=True)
class GameDefinition:
    id: str
    name: str
    description: str
    duration_seconds: float
    validate: Validator
    success_message: str
    failure_message: str
    instructions: str
    difficulty: str = "easy"

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration_seconds": self.duration_seconds,
            "instructions": self.instructions,
            "difficulty": self.difficulty,
        }


def validate_smile(frame: LandmarkFrame, elapsed_ms: float, scratch: GameScratch) -> bool:
    return check_smiley_stretch(frame).passed


def validate_brow_chill(frame: LandmarkFrame, elapsed_ms: float, scratch: GameScratch) -> bool:
    return not check_brow_lifter(frame).passed


def validate_breath_blast(frame: LandmarkFrame, elapsed_ms: float, scratch: GameScratch) -> bool:
    """Jaw open for the first half of each breath cycle, closed for the second"""
    jaw_open = check_jaw_dropper(frame).passed
    phase = (elapsed_ms % BREATH_CYCLE_MS) / BREATH_CYCLE_MS
    return jaw_open if phase < 0.5 else not jaw_open


def validate_eye_rest(frame: LandmarkFrame, elapsed_ms: float, scratch: GameScratch) -> bool:
    left, right = fx.eye_openings(frame)
    return left < EYES_CLOSED_MAX and right < EYES_CLOSED_MAX


def validate_jaw_jiggle(frame: LandmarkFrame, elapsed_ms: float, scratch: GameScratch) -> bool:
    """Counts chin swings larger than JIGGLE_MOVE_MIN between ticks"""
    current = frame[L.CHIN].y
    previous = scratch.get("prev_chin_y")
    count = scratch.get("jiggles", 0)

    if previous is not None and abs(current - previous) > JIGGLE_MOVE_MIN:
        count += 1
        scratch["jiggles"] = count
        # Re-anchor halfway so one long swing is not counted twice
        scratch["prev_chin_y"] = current - (current - previous) / 2
        return count >= JIGGLES_REQUIRED

    scratch["prev_chin_y"] = current
    return count >= JIGGLES_REQUIRED


def validate_cheek_drop(frame: LandmarkFrame, elapsed_ms: float, scratch: GameScratch) -> bool:
    return not check_cheek_puffer(frame).passed


def validate_lip_loosen(frame: LandmarkFrame, elapsed_ms: float, scratch: GameScratch) -> bool:
    return not check_lip_pucker(frame).passed


def validate_nose_flare(frame: LandmarkFrame, elapsed_ms: float, scratch: GameScratch) -> bool:
    """Counts ticks where both nostrils moved sideways by more than FLARE_MOVE_MIN"""
    left, right = fx.nostril_positions(frame)
    previous = scratch.get("prev_nostrils")
    count = scratch.get("flares", 0)

    if previous is not None:
        prev_left, prev_right = previous
        if abs(left - prev_left) > FLARE_MOVE_MIN and abs(right - prev_right) > FLARE_MOVE_MIN:
            count += 1
            scratch["flares"] = count
            scratch["prev_nostrils"] = (left - (left - prev_left) / 2, right - (right - prev_right) / 2)
            return count >= FLARES_REQUIRED

    scratch["prev_nostrils"] = (left, right)
    return count >= FLARES_REQUIRED


def validate_face_freeze(frame: LandmarkFrame, elapsed_ms: float, scratch: GameScratch) -> bool:
    """Every tracked point moved less than FREEZE_MOVE_MAX since the last tick"""
    current = [(frame[i].x, frame[i].y) for i in FREEZE_POINTS]
    previous: Optional[List] = scratch.get("prev_face")
    scratch["prev_face"] = current
    if previous is None:
        return True
    return all(
        ((cx - px) ** 2 + (cy - py) ** 2) ** 0.5 < FREEZE_MOVE_MAX
        for (cx, cy), (px, py) in zip(current, previous)
    )


GAMES: List[GameDefinition] = [
    GameDefinition(
        id="smile-snipe", name="Smile Snipe",
        description="Maintain a wide smile to snipe away stress gremlins",
        duration_seconds=30, validate=validate_smile,
        success_message="Grin's too posh for gremlins, snipe win!",
        failure_message="Smile harder, stress is dodging!",
        instructions="Smile wide to snipe stress gremlins",
        difficulty="easy",
    ),
    GameDefinition(
        id="brow-chill", name="Brow Chill",
        description="Keep your brows relaxed and still to freeze stress",
        duration_seconds=30, validate=validate_brow_chill,
        success_message="Brows on vacay, stress canceled deluxe!",
        failure_message="Chill those caterpillars, fam!",
        instructions="Relax your eyebrows completely",
        difficulty="easy",
    ),
    GameDefinition(
        id="breath-blast", name="Breath Blast",
        description="Deep breathing to blast away tension",
        duration_seconds=30, validate=validate_breath_blast,
        success_message="Blast stress with air power, vibe titan!",
        failure_message="Breathe deeper, rookie!",
        instructions="Take slow, deep breaths (2s in with your mouth open, 2s out with it closed)",
        difficulty="medium",
    ),
    GameDefinition(
        id="eye-rest", name="Eye Rest",
        description="Close your eyes for a quick refreshing break",
        duration_seconds=5, validate=validate_eye_rest,
        success_message="Peepers napped, stress got zapped!",
        failure_message="Close 'em longer, vibe slacker!",
        instructions="Close your eyes completely for 5 seconds",
        difficulty="easy",
    ),
    GameDefinition(
        id="jaw-jiggle", name="Jaw Jiggle",
        description="Wiggle your jaw to shake out tension",
        duration_seconds=30, validate=validate_jaw_jiggle,
        success_message="Wiggle master, tension's toast!",
        failure_message="Shake it more, stress is clingy!",
        instructions="Wiggle your jaw up and down 10 times",
        difficulty="hard",
    ),
    GameDefinition(
        id="positive-reframe", name="Positive Reframe",
        description="Smile to reframe negative thoughts positively",
        duration_seconds=30, validate=validate_smile,
        success_message="Zen boss mode, stress reframed elite!",
        failure_message="Smile and reframe, you're halfway!",
        instructions="Smile wide while thinking positive thoughts",
        difficulty="medium",
    ),
    GameDefinition(
        id="cheek-drop", name="Cheek Drop",
        description="Relax your cheeks to release tension",
        duration_seconds=30, validate=validate_cheek_drop,
        success_message="Chipmunk vibes dropped, stress KO'd!",
        failure_message="Relax those cheeks, fam!",
        instructions="Relax your cheeks completely",
        difficulty="easy",
    ),
    GameDefinition(
        id="lip-loosen", name="Lip Loosen",
        description="Loosen your lips to release facial tension",
        duration_seconds=30, validate=validate_lip_loosen,
        success_message="Lips too chill for vaults, vibe win!",
        failure_message="Loosen up, tension's tight!",
        instructions="Relax your lips completely",
        difficulty="easy",
    ),
    GameDefinition(
        id="nose-flare", name="Nose Flare",
        description="Flare your nostrils to release trapped stress",
        duration_seconds=30, validate=validate_nose_flare,
        success_message="Nostril glow-up, blues flared out!",
        failure_message="Flare more, stress is sneaky!",
        instructions="Flare your nostrils 5 times",
        difficulty="hard",
    ),
    GameDefinition(
        id="face-freeze", name="Face Freeze",
        description="Freeze your face to solidify your calm",
        duration_seconds=15, validate=validate_face_freeze,
        success_message="Statue vibes, stress froze solid!",
        failure_message="Hold it, don't crack!",
        instructions="Keep your entire face completely still",
        difficulty="medium",
    ),
]

GAMES_BY_ID: Dict[str, GameDefinition] = {g.id: g for g in GAMES}


def get_game(game_id: str) -> GameDefinition:
    try:
        return GAMES_BY_ID[game_id]
    except KeyError:
        raise UnknownGameError(f"Unknown game: {game_id!r}") from None


def candidate_games(games: List[GameDefinition], stress: float, extreme_threshold: float) -> List[GameDefinition]:
    """Games fit for the current stress; hard games are held back when stress is extreme"""
    if stress <= extreme_threshold:
        return list(games)
    gentler = [g for g in games if g.difficulty != "hard"]
    return gentler or list(games)
