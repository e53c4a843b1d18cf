"""The ten facial exercises and their validators.

Every threshold is in normalized coordinate space (see features.py) and was
picked empirically; tune the constants, not the control flow.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple

import features as fx
from exceptions import UnknownExerciseError
from landmarks import FaceLandmark as L, LandmarkFrame

# Jaw Dropper
JAW_DROP_MIN = 0.22
JAW_MOUTH_OPEN_MIN = 0.05
# Brow Lifter
BROW_HEIGHT_MIN = 0.15
BROW_SYMMETRY_MAX = 0.03
# Cheek Puffer
CHEEK_WIDTH_MIN = 0.25
CHEEK_PROTRUSION_MAX = -0.01
# Eye Winker
WINK_ASYMMETRY_MIN = 0.02
WINK_CLOSED_MAX = 0.01
WINK_OPEN_MIN = 0.02
# Smiley Stretch
SMILE_WIDTH_MIN = 0.3
# Nose Scruncher
NOSE_LENGTH_MAX = 0.025
SCRUNCH_BROW_PINCH_MAX = 0.08
# Lip Pucker
PUCKER_WIDTH_MAX = 0.15
PUCKER_PROTRUSION_MAX = -0.01
PUCKER_LIP_HEIGHT_MIN = 0.04
# Chin Jutter
CHIN_PROTRUSION_MIN = 0.015
CHIN_WIDTH_MAX = 0.2
# Forehead Smoother
FOREHEAD_VARIATION_MAX = 0.005
BROW_LEVEL_MAX = 0.01
# Tongue Twister
TONGUE_MOUTH_OPEN_MIN = 0.1
TONGUE_MOUTH_HEIGHT_MIN = 0.15
TONGUE_CHIN_DROP_MIN = 0.03


class ExerciseCheck(NamedTuple):
    passed: bool
    progress: float  # 0..1, 1.0 only when passed


def _above(value: float, threshold: float) -> float:
    if threshold <= 0:
        return 1.0 if value > threshold else 0.0
    return max(0.0, min(1.0, value / threshold))


def _below(value: float, threshold: float) -> float:
    if value <= threshold:
        return 1.0
    if threshold <= 0:
        return 0.0
    return max(0.0, min(1.0, threshold / value))


def _check(passed: bool, progress: float) -> ExerciseCheck:
    if passed:
        return ExerciseCheck(True, 1.0)
    # A strict comparison can fail with the ratio rounding to 1.0
    return ExerciseCheck(False, min(progress, 0.99))


def check_jaw_dropper(frame: LandmarkFrame) -> ExerciseCheck:
    drop = fx.jaw_drop(frame)
    opening = fx.mouth_opening(frame)
    passed = drop > JAW_DROP_MIN and opening > JAW_MOUTH_OPEN_MIN
    return _check(passed, min(_above(drop, JAW_DROP_MIN), _above(opening, JAW_MOUTH_OPEN_MIN)))


def check_brow_lifter(frame: LandmarkFrame) -> ExerciseCheck:
    left, right = fx.brow_heights(frame)
    height = (left + right) / 2
    symmetric = abs(left - right) < BROW_SYMMETRY_MAX
    return _check(height > BROW_HEIGHT_MIN and symmetric, _above(height, BROW_HEIGHT_MIN))


def check_cheek_puffer(frame: LandmarkFrame) -> ExerciseCheck:
    width = fx.cheek_width(frame)
    protrusion = fx.cheek_protrusion(frame)
    passed = width > CHEEK_WIDTH_MIN and protrusion < CHEEK_PROTRUSION_MAX
    return _check(passed, min(_above(width, CHEEK_WIDTH_MIN), _above(-protrusion, -CHEEK_PROTRUSION_MAX)))


def check_eye_winker(frame: LandmarkFrame) -> ExerciseCheck:
    """One eye closed and the other open; plain asymmetry is not enough"""
    left, right = fx.eye_openings(frame)
    asymmetry = abs(left - right)
    one_closed = min(left, right) < WINK_CLOSED_MAX
    one_open = max(left, right) > WINK_OPEN_MIN
    passed = asymmetry > WINK_ASYMMETRY_MIN and one_closed and one_open
    return _check(passed, min(_above(asymmetry, WINK_ASYMMETRY_MIN), _below(min(left, right), WINK_CLOSED_MAX)))


def check_smiley_stretch(frame: LandmarkFrame) -> ExerciseCheck:
    """Wide mouth with the corners lifted above the lip centre"""
    width = fx.mouth_width(frame)
    upturned = fx.mouth_corner_lift(frame) > 0
    return _check(width > SMILE_WIDTH_MIN and upturned, _above(width, SMILE_WIDTH_MIN))


def check_nose_scruncher(frame: LandmarkFrame) -> ExerciseCheck:
    length = fx.nose_length(frame)
    pinch = fx.brow_pinch(frame)
    passed = length < NOSE_LENGTH_MAX and pinch < SCRUNCH_BROW_PINCH_MAX
    return _check(passed, min(_below(length, NOSE_LENGTH_MAX), _below(pinch, SCRUNCH_BROW_PINCH_MAX)))


def check_lip_pucker(frame: LandmarkFrame) -> ExerciseCheck:
    width = fx.mouth_width(frame)
    protrusion = fx.lip_protrusion(frame)
    height = fx.lip_height(frame)
    passed = width < PUCKER_WIDTH_MAX and protrusion < PUCKER_PROTRUSION_MAX and height > PUCKER_LIP_HEIGHT_MIN
    progress = min(
        _below(width, PUCKER_WIDTH_MAX),
        _above(-protrusion, -PUCKER_PROTRUSION_MAX),
        _above(height, PUCKER_LIP_HEIGHT_MIN),
    )
    return _check(passed, progress)


def check_chin_jutter(frame: LandmarkFrame) -> ExerciseCheck:
    protrusion = fx.chin_protrusion(frame)
    narrowed = fx.chin_width(frame) < CHIN_WIDTH_MAX
    return _check(protrusion > CHIN_PROTRUSION_MIN and narrowed, _above(protrusion, CHIN_PROTRUSION_MIN))


def check_forehead_smoother(frame: LandmarkFrame) -> ExerciseCheck:
    variation = fx.forehead_variation(frame)
    brows_level = fx.vertical_distance(frame, L.LEFT_EYEBROW, L.RIGHT_EYEBROW) < BROW_LEVEL_MAX
    return _check(variation < FOREHEAD_VARIATION_MAX and brows_level, _below(variation, FOREHEAD_VARIATION_MAX))


def check_tongue_twister(frame: LandmarkFrame) -> ExerciseCheck:
    """The mesh has no tongue points, so a very open mouth and dropped chin stand in"""
    opening = fx.mouth_opening(frame)
    height = fx.lip_height(frame)
    chin_drop = fx.chin_below_lip(frame)
    passed = opening > TONGUE_MOUTH_OPEN_MIN and height > TONGUE_MOUTH_HEIGHT_MIN and chin_drop > TONGUE_CHIN_DROP_MIN
    progress = min(
        _above(opening, TONGUE_MOUTH_OPEN_MIN),
        _above(height, TONGUE_MOUTH_HEIGHT_MIN),
        _above(chin_drop, TONGUE_CHIN_DROP_MIN),
    )
    return _check(passed, progress)


@dataclass(frozen=True)
class ExerciseDefinition:
    name: str
    check: Callable[[LandmarkFrame], ExerciseCheck]
    success_message: str
    failure_message: str
    instructions: str
    benefits: str
    direction: str
    position: str
    description: str
    focus_points: List[int] = field(default_factory=list)

    def validate(self, frame: LandmarkFrame) -> bool:
        return self.check(frame).passed

    def evaluate(self, frame: LandmarkFrame) -> ExerciseCheck:
        return self.check(frame)

    def visual_direction(self) -> Dict[str, str]:
        return {"direction": self.direction, "position": self.position, "description": self.description}

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "instructions": self.instructions,
            "benefits": self.benefits,
            "visual_direction": self.visual_direction(),
            "focus_points": [int(p) for p in self.focus_points],
        }


_DEFINITIONS = [
    ExerciseDefinition(
        name="Jaw Dropper",
        check=check_jaw_dropper,
        success_message="Jaw's dropping jaws, elite status unlocked!",
        failure_message="Widen it, vibe rookie!",
        instructions="Open your mouth wide, dropping your jaw as far as comfortable.",
        benefits="Releases tension in the jaw, a common stress holding area. Improves blood flow to facial muscles.",
        direction="down", position="mouth", description="Drop your jaw down",
        focus_points=[L.CHIN, L.NOSE_TIP, L.UPPER_LIP, L.LOWER_LIP],
    ),
    ExerciseDefinition(
        name="Brow Lifter",
        check=check_brow_lifter,
        success_message="Brows hit the VIP list, stress is shook!",
        failure_message="Lift 'em to the penthouse, fam!",
        instructions="Raise your eyebrows high, as if surprised.",
        benefits="Reduces forehead tension and headaches. Activates muscles associated with positive surprise emotions.",
        direction="up", position="eyebrows", description="Raise your eyebrows",
        focus_points=[L.LEFT_EYEBROW_OUTER, L.LEFT_EYEBROW_INNER, L.RIGHT_EYEBROW_OUTER,
                      L.RIGHT_EYEBROW_INNER, L.NOSE_TIP],
    ),
    ExerciseDefinition(
        name="Cheek Puffer",
        check=check_cheek_puffer,
        success_message="Chipmunk champ, puff power maxed!",
        failure_message="Puff harder, glow slacker!",
        instructions="Puff your cheeks out with air, hold, then release.",
        benefits="Strengthens facial muscles and promotes awareness of tension patterns. Creates a playful mindset.",
        direction="out", position="cheeks", description="Puff your cheeks out",
        focus_points=[L.LEFT_CHEEK, L.RIGHT_CHEEK, L.LEFT_CHEEK_OUTER, L.RIGHT_CHEEK_OUTER],
    ),
    ExerciseDefinition(
        name="Eye Winker",
        check=check_eye_winker,
        success_message="Wink wizard, eye game on fleek!",
        failure_message="One eye's lazy, step it up!",
        instructions="Wink one eye, then the other. Keep alternating.",
        benefits="Improves eye muscle control and reduces eye strain from digital devices. Engages playfulness.",
        direction="close", position="eyes", description="Close one eye",
        focus_points=[L.LEFT_EYE_TOP, L.LEFT_EYE_BOTTOM, L.RIGHT_EYE_TOP, L.RIGHT_EYE_BOTTOM],
    ),
    ExerciseDefinition(
        name="Smiley Stretch",
        check=check_smiley_stretch,
        success_message="Grin king, stress just got dethroned!",
        failure_message="Stretch that smile, vibe lord!",
        instructions="Smile as wide as possible, showing your teeth.",
        benefits="Activates the same neural pathways as genuine happiness, triggering positive emotion feedback loops.",
        direction="out", position="mouth", description="Stretch your smile wide",
        focus_points=[L.MOUTH_LEFT, L.MOUTH_RIGHT, L.UPPER_LIP, L.LOWER_LIP],
    ),
    ExerciseDefinition(
        name="Nose Scruncher",
        check=check_nose_scruncher,
        success_message="Scrunched it, wrinkle warrior!",
        failure_message="Snout's slacking, crinkle more!",
        instructions="Scrunch your nose up like you smell something bad.",
        benefits="Releases tension in the central face area. Engages mindfulness through focused muscle control.",
        direction="in", position="nose", description="Scrunch your nose",
        focus_points=[L.NOSE_TIP, L.NOSE_BRIDGE, L.LEFT_EYEBROW_INNER, L.RIGHT_EYEBROW_INNER],
    ),
    ExerciseDefinition(
        name="Lip Pucker",
        check=check_lip_pucker,
        success_message="Pout power, lips too posh for stress!",
        failure_message="Pucker up, you're half there!",
        instructions="Pucker your lips forward as if giving a kiss.",
        benefits="Improves circulation to lips and mouth area. Activates muscles rarely used in daily expressions.",
        direction="in", position="mouth", description="Pucker your lips",
        focus_points=[L.UPPER_LIP, L.LOWER_LIP, L.UPPER_LIP_TOP, L.LOWER_LIP_BOTTOM,
                      L.MOUTH_LEFT, L.MOUTH_RIGHT],
    ),
    ExerciseDefinition(
        name="Chin Jutter",
        check=check_chin_jutter,
        success_message="Chin out, boss, vibe royalty!",
        failure_message="Push it forward, champ!",
        instructions="Jut your chin forward, extending it away from your neck.",
        benefits="Strengthens jawline and releases neck tension. Embodies confidence through posture adjustment.",
        direction="out", position="chin", description="Jut your chin forward",
        focus_points=[L.CHIN, L.NOSE_TIP, L.CHIN_LEFT, L.CHIN_RIGHT],
    ),
    ExerciseDefinition(
        name="Forehead Smoother",
        check=check_forehead_smoother,
        success_message="Zen forehead, stress canceled deluxe!",
        failure_message="Smooth it out, tension's lurking!",
        instructions="Relax your forehead completely, removing all wrinkles.",
        benefits="Trains conscious relaxation of worry-expressing muscles. Essential for appearing and feeling calm.",
        direction="none", position="forehead", description="Relax your forehead",
        focus_points=[L.FOREHEAD_TOP, L.FOREHEAD_MID, L.LEFT_EYEBROW, L.RIGHT_EYEBROW],
    ),
    ExerciseDefinition(
        name="Tongue Twister",
        check=check_tongue_twister,
        success_message="Tongue titan, vibe beast mode!",
        failure_message="Stick it out, don't hide!",
        instructions="Open your mouth and stick your tongue out as far as possible.",
        benefits="Releases tension in the tongue and throat. Improves vocal resonance and speech clarity under stress.",
        direction="out", position="tongue", description="Stick your tongue out",
        focus_points=[L.UPPER_LIP, L.LOWER_LIP, L.UPPER_LIP_TOP, L.LOWER_LIP_BOTTOM, L.CHIN],
    ),
]

EXERCISES: Dict[str, ExerciseDefinition] = {d.name: d for d in _DEFINITIONS}
EXERCISE_NAMES: List[str] = [d.name for d in _DEFINITIONS]
DEFAULT_EXERCISE = "Jaw Dropper"


def get_exercise(name: str) -> ExerciseDefinition:
    try:
        return EXERCISES[name]
    except KeyError:
        raise UnknownExerciseError(f"Unknown exercise: {name!r}") from None


def get_instructions(name: str) -> str:
    exercise = EXERCISES.get(name)
    return exercise.instructions if exercise else "Follow the on-screen guidance."


def get_benefits(name: str) -> str:
    exercise = EXERCISES.get(name)
    if exercise is None:
        return "This exercise helps reduce facial tension and promote mindfulness."
    return exercise.benefits


def get_visual_direction(name: str) -> Dict[str, str]:
    exercise = EXERCISES.get(name)
    if exercise is None:
        return {"direction": "none", "position": "mouth", "description": "Follow the exercise instructions"}
    return exercise.visual_direction()


def get_focus_points(name: str) -> List[int]:
    exercise = EXERCISES.get(name)
    return [int(p) for p in exercise.focus_points] if exercise else []
