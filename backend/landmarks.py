"""Face mesh landmark index table and the validated per-tick frame"""
from enum import IntEnum
from typing import Any, Dict, Iterable, NamedTuple, Optional, Sequence
import logging

import numpy as np

from config import LANDMARK_COUNT
from exceptions import MalformedFrameError


class FaceLandmark(IntEnum):
    """MediaPipe face mesh indices shared by every heuristic.

    Coordinates behind these indices are in normalized image space: x and y in
    [0, 1], z a small depth offset where negative means toward the camera.
    """
    # Eyes
    LEFT_EYE_TOP = 159
    LEFT_EYE_BOTTOM = 145
    LEFT_EYE_OUTER = 33
    LEFT_EYE_INNER = 133
    RIGHT_EYE_TOP = 386
    RIGHT_EYE_BOTTOM = 374
    RIGHT_EYE_OUTER = 263
    RIGHT_EYE_INNER = 362

    # Eyebrows
    LEFT_EYEBROW_OUTER = 70
    LEFT_EYEBROW = 107
    LEFT_EYEBROW_INNER = 105
    RIGHT_EYEBROW_OUTER = 300
    RIGHT_EYEBROW = 336
    RIGHT_EYEBROW_INNER = 334

    # Mouth
    MOUTH_LEFT = 61
    MOUTH_RIGHT = 291
    UPPER_LIP = 13
    LOWER_LIP = 14
    UPPER_LIP_TOP = 0
    LOWER_LIP_BOTTOM = 17

    # Nose
    NOSE_TIP = 4
    NOSE_BRIDGE = 6
    NOSE_LEFT = 285
    NOSE_RIGHT = 55
    LEFT_NOSTRIL = 102
    RIGHT_NOSTRIL = 331

    # Chin and forehead
    CHIN = 152
    CHIN_LEFT = 149
    CHIN_RIGHT = 378
    FOREHEAD_TOP = 10
    FOREHEAD_MID = 151

    # Cheeks
    LEFT_CHEEK = 234
    RIGHT_CHEEK = 454
    LEFT_CHEEK_OUTER = 206
    RIGHT_CHEEK_OUTER = 426

    # Jaw
    JAW_LEFT = 207
    JAW_RIGHT = 427
    JAW_CENTER = 200


class Point(NamedTuple):
    x: float
    y: float
    z: float


def _coords(raw: Any) -> Sequence[float]:
    if isinstance(raw, dict):
        return (raw["x"], raw["y"], raw.get("z", 0.0))
    if hasattr(raw, "x") and hasattr(raw, "y"):
        return (raw.x, raw.y, getattr(raw, "z", 0.0))
    return tuple(raw)[:3]


class LandmarkFrame:
    """One complete face: a read-only (468, 3) array of x, y, z.

    A frame is either fully populated or does not exist; construction raises
    MalformedFrameError for anything partial.
    """

    __slots__ = ("points",)

    def __init__(self, points: np.ndarray):
        arr = np.asarray(points, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] != 3:
            raise MalformedFrameError(f"Expected (N, 3) landmark array, got shape {arr.shape}")
        if arr.shape[0] < LANDMARK_COUNT:
            raise MalformedFrameError(f"Expected {LANDMARK_COUNT} landmarks, got {arr.shape[0]}")
        # Refined meshes append iris points after the 468 mesh points
        arr = arr[:LANDMARK_COUNT].copy()
        if not np.all(np.isfinite(arr)):
            raise MalformedFrameError("Landmark frame contains non-finite coordinates")
        arr.flags.writeable = False
        self.points = arr

    @classmethod
    def from_points(cls, raw_points: Iterable[Any]) -> "LandmarkFrame":
        """Build a frame from dicts, objects with .x/.y/.z, or [x, y, z] triples"""
        try:
            rows = [_coords(p) for p in raw_points]
            arr = np.array(rows, dtype=np.float64)
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedFrameError(f"Unreadable landmark point: {e}") from e
        return cls(arr)

    def __getitem__(self, index: int) -> Point:
        x, y, z = self.points[int(index)]
        return Point(float(x), float(y), float(z))

    def __len__(self) -> int:
        return self.points.shape[0]

    def replace(self, updates: Dict[int, Sequence[float]]) -> "LandmarkFrame":
        """Return a copy with some points moved"""
        arr = self.points.copy()
        for index, coords in updates.items():
            arr[int(index)] = coords
        return LandmarkFrame(arr)

    def to_list(self) -> list:
        return [{"x": float(x), "y": float(y), "z": float(z)} for x, y, z in self.points]


def parse_frame(raw: Any) -> Optional[LandmarkFrame]:
    """Turn detector output into a frame, or None when there is no usable face.

    Partial or corrupt frames are treated exactly like "no face".
    """
    if raw is None:
        return None
    if isinstance(raw, LandmarkFrame):
        return raw
    try:
        if isinstance(raw, np.ndarray):
            return LandmarkFrame(raw)
        return LandmarkFrame.from_points(raw)
    except MalformedFrameError as e:
        logging.debug(f"Dropping malformed landmark frame: {e}")
        return None
