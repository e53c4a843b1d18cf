"""Heuristic stress estimation from facial tension indicators"""
from collections import deque
from typing import Dict, List, Optional
import random

import features as fx
from config import NEUTRAL_STRESS, STRESS_HISTORY_SIZE, STRESS_JITTER, STRESS_TREND_DELTA
from landmarks import LandmarkFrame

# Indicator weights, summing to 1
STRESS_WEIGHTS: Dict[str, float] = {
    "mouth": 0.20,
    "eyebrow": 0.25,
    "eye": 0.15,
    "forehead": 0.15,
    "jaw": 0.15,
    "lip": 0.05,
    "nose": 0.05,
}

NEUTRAL_EYE_OPENING = 0.03
LIP_COMPRESSION_RANGE = 0.05
NEUTRAL_JAW_RATIO = 2.0
NEUTRAL_NOSE_WIDTH = 0.15


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def stress_indicators(frame: LandmarkFrame) -> Dict[str, float]:
    """Seven tension indicators, each clamped to [0, 1]"""
    # Narrow mouth
    mouth = 1 - min(1.0, fx.mouth_width(frame) * 3.5)

    # Knitted or uneven brows
    eyebrow = (1 - fx.brow_bridge_offset(frame)) * 5 + fx.brow_asymmetry(frame) * 3

    # Eyes too wide or too narrow, or uneven
    left_eye, right_eye = fx.eye_openings(frame)
    widen = abs((left_eye + right_eye) / 2 - NEUTRAL_EYE_OPENING) * 10
    eye_asymmetry = abs(left_eye - right_eye) * 10
    eye = widen * 0.7 + eye_asymmetry * 0.3

    forehead = fx.forehead_variation(frame) * 15

    jaw = (fx.jaw_ratio(frame) - NEUTRAL_JAW_RATIO) * 2

    # Pressed lips
    lip = 1 - min(LIP_COMPRESSION_RANGE, fx.mouth_opening(frame)) / LIP_COMPRESSION_RANGE

    # Flared nostrils
    nose = (fx.nose_width(frame) - NEUTRAL_NOSE_WIDTH) * 5

    return {
        "mouth": _clamp01(mouth),
        "eyebrow": _clamp01(eyebrow),
        "eye": _clamp01(eye),
        "forehead": _clamp01(forehead),
        "jaw": _clamp01(jaw),
        "lip": _clamp01(lip),
        "nose": _clamp01(nose),
    }


def estimate_stress(frame: Optional[LandmarkFrame], rng: Optional[random.Random] = None,
                    jitter: float = STRESS_JITTER) -> float:
    """Stress score in [0, 1]; 0.5 when there is no face.

    `jitter` is the share of the score replaced by uniform noise from `rng`,
    so jitter=0 makes the result a pure function of the frame.
    """
    if frame is None:
        return NEUTRAL_STRESS

    indicators = stress_indicators(frame)
    score = sum(indicators[name] * weight for name, weight in STRESS_WEIGHTS.items())

    if jitter > 0:
        rng = rng or random
        score = score * (1 - jitter) + rng.random() * jitter

    return _clamp01(score)


def stress_level(score: float) -> str:
    if score > 0.7:
        return "high"
    if score > 0.5:
        return "medium"
    return "low"


class StressHistory:
    """Bounded FIFO of recent stress samples; old samples fall off silently"""

    def __init__(self, maxlen: int = STRESS_HISTORY_SIZE):
        self.samples: deque = deque(maxlen=maxlen)

    def append(self, score: float):
        self.samples.append(score)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def latest(self) -> Optional[float]:
        return self.samples[-1] if self.samples else None

    def recent(self, k: int) -> List[float]:
        if k <= 0:
            return []
        return list(self.samples)[-k:]

    def average(self, k: Optional[int] = None) -> Optional[float]:
        values = list(self.samples) if k is None else self.recent(k)
        if not values:
            return None
        return sum(values) / len(values)

    def sustained_above(self, threshold: float, k: int) -> bool:
        """True when there are at least k samples and their mean exceeds threshold"""
        if len(self.samples) < k:
            return False
        return self.average(k) > threshold

    def trend(self, window: int = 10, delta: float = STRESS_TREND_DELTA) -> str:
        """Compare the older and newer halves of the last `window` samples"""
        values = self.recent(window)
        if len(values) < 4:
            return "stable"
        half = len(values) // 2
        older = sum(values[:half]) / half
        newer = sum(values[half:]) / (len(values) - half)
        if newer - older > delta:
            return "rising"
        if older - newer > delta:
            return "falling"
        return "stable"

    def clear(self):
        self.samples.clear()
