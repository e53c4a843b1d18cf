"""Geometric measurements over a single landmark frame.

All values are in normalized coordinate space (fractions of the image width
and height, and the detector's relative depth). There is no pixel conversion
and no camera calibration, so thresholds built on these numbers are only
meaningful relative to each other.
"""
from typing import Tuple

import numpy as np

from landmarks import FaceLandmark as L, LandmarkFrame


def distance(frame: LandmarkFrame, a: int, b: int) -> float:
    """Euclidean distance between two points in x/y"""
    pa, pb = frame.points[int(a)], frame.points[int(b)]
    return float(np.hypot(pa[0] - pb[0], pa[1] - pb[1]))


def horizontal_distance(frame: LandmarkFrame, a: int, b: int) -> float:
    return abs(frame[a].x - frame[b].x)


def vertical_distance(frame: LandmarkFrame, a: int, b: int) -> float:
    return abs(frame[a].y - frame[b].y)


def depth_difference(frame: LandmarkFrame, a: int, b: int) -> float:
    """z of a minus z of b (negative when a is closer to the camera)"""
    return frame[a].z - frame[b].z


def midpoint_y(frame: LandmarkFrame, a: int, b: int) -> float:
    return (frame[a].y + frame[b].y) / 2


def point_spread(frame: LandmarkFrame, *indices: int) -> float:
    """Variance of y across a few points, a flatness proxy"""
    ys = [frame[i].y for i in indices]
    return float(np.var(ys))


# Eyes

def eye_openings(frame: LandmarkFrame) -> Tuple[float, float]:
    """Vertical lid opening of the left and right eye"""
    left = vertical_distance(frame, L.LEFT_EYE_TOP, L.LEFT_EYE_BOTTOM)
    right = vertical_distance(frame, L.RIGHT_EYE_TOP, L.RIGHT_EYE_BOTTOM)
    return left, right


# Mouth

def mouth_width(frame: LandmarkFrame) -> float:
    return horizontal_distance(frame, L.MOUTH_LEFT, L.MOUTH_RIGHT)


def mouth_opening(frame: LandmarkFrame) -> float:
    """Gap between the inner lips"""
    return vertical_distance(frame, L.UPPER_LIP, L.LOWER_LIP)


def lip_height(frame: LandmarkFrame) -> float:
    """Outer height from the top of the upper lip to the bottom of the lower lip"""
    return vertical_distance(frame, L.UPPER_LIP_TOP, L.LOWER_LIP_BOTTOM)


def mouth_corner_lift(frame: LandmarkFrame) -> float:
    """Positive when the mouth corners sit above the lip centre (smile shape)"""
    corners = midpoint_y(frame, L.MOUTH_LEFT, L.MOUTH_RIGHT)
    centre = midpoint_y(frame, L.UPPER_LIP, L.LOWER_LIP)
    return centre - corners


def lip_protrusion(frame: LandmarkFrame) -> float:
    """Average lip depth; more negative means lips pushed toward the camera"""
    return (frame[L.UPPER_LIP].z + frame[L.LOWER_LIP].z) / 2


# Jaw and chin

def jaw_drop(frame: LandmarkFrame) -> float:
    return vertical_distance(frame, L.CHIN, L.NOSE_TIP)


def chin_below_lip(frame: LandmarkFrame) -> float:
    return frame[L.CHIN].y - frame[L.LOWER_LIP_BOTTOM].y


def chin_protrusion(frame: LandmarkFrame) -> float:
    """Positive when the chin is further forward than the nose tip"""
    return depth_difference(frame, L.NOSE_TIP, L.CHIN)


def chin_width(frame: LandmarkFrame) -> float:
    return horizontal_distance(frame, L.CHIN_LEFT, L.CHIN_RIGHT)


def jaw_ratio(frame: LandmarkFrame) -> float:
    """Jaw width over jaw height; high values suggest a clenched jaw"""
    width = horizontal_distance(frame, L.JAW_LEFT, L.JAW_RIGHT)
    height = vertical_distance(frame, L.JAW_CENTER, L.CHIN)
    if height <= 0:
        return float("inf")
    return width / height


# Brows and forehead

def brow_heights(frame: LandmarkFrame) -> Tuple[float, float]:
    """Average height of each brow above the nose tip"""
    nose_y = frame[L.NOSE_TIP].y
    left = ((nose_y - frame[L.LEFT_EYEBROW_OUTER].y) + (nose_y - frame[L.LEFT_EYEBROW_INNER].y)) / 2
    right = ((nose_y - frame[L.RIGHT_EYEBROW_OUTER].y) + (nose_y - frame[L.RIGHT_EYEBROW_INNER].y)) / 2
    return left, right


def brow_pinch(frame: LandmarkFrame) -> float:
    """Horizontal gap between the inner brows"""
    return horizontal_distance(frame, L.LEFT_EYEBROW_INNER, L.RIGHT_EYEBROW_INNER)


def brow_bridge_offset(frame: LandmarkFrame) -> float:
    """Mean vertical offset of the inner brows from the nose bridge"""
    bridge_y = frame[L.NOSE_BRIDGE].y
    return abs((frame[L.LEFT_EYEBROW_INNER].y - bridge_y) + (frame[L.RIGHT_EYEBROW_INNER].y - bridge_y)) / 2


def brow_asymmetry(frame: LandmarkFrame) -> float:
    left_slope = frame[L.LEFT_EYEBROW_OUTER].y - frame[L.LEFT_EYEBROW_INNER].y
    right_slope = frame[L.RIGHT_EYEBROW_OUTER].y - frame[L.RIGHT_EYEBROW_INNER].y
    return abs(left_slope - right_slope)


def forehead_variation(frame: LandmarkFrame) -> float:
    return vertical_distance(frame, L.FOREHEAD_TOP, L.FOREHEAD_MID)


# Nose and cheeks

def nose_length(frame: LandmarkFrame) -> float:
    return vertical_distance(frame, L.NOSE_TIP, L.NOSE_BRIDGE)


def nose_width(frame: LandmarkFrame) -> float:
    return horizontal_distance(frame, L.NOSE_LEFT, L.NOSE_RIGHT)


def nostril_positions(frame: LandmarkFrame) -> Tuple[float, float]:
    return frame[L.LEFT_NOSTRIL].x, frame[L.RIGHT_NOSTRIL].x


def cheek_width(frame: LandmarkFrame) -> float:
    return horizontal_distance(frame, L.LEFT_CHEEK, L.RIGHT_CHEEK)


def cheek_protrusion(frame: LandmarkFrame) -> float:
    """Mean cheek depth relative to the outer cheek points (negative = puffed)"""
    left = depth_difference(frame, L.LEFT_CHEEK, L.LEFT_CHEEK_OUTER)
    right = depth_difference(frame, L.RIGHT_CHEEK, L.RIGHT_CHEEK_OUTER)
    return (left + right) / 2
