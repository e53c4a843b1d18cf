"""Image to landmark frame adapter around MediaPipe Face Mesh"""
from typing import Optional
import logging
import time

import numpy as np

from exceptions import DetectorUnavailableError
from landmarks import LandmarkFrame, parse_frame


class FaceMeshDetector:
    """Lazily starts MediaPipe Face Mesh on first use.

    detect() returns a full LandmarkFrame for the first face found, or None
    when no face is visible. MediaPipe being missing or failing to start is
    reported as DetectorUnavailableError so callers can answer "try later"
    instead of treating it like an empty frame.
    """

    def __init__(self, static_image_mode: bool = False,
                 min_detection_confidence: float = 0.5,
                 min_tracking_confidence: float = 0.5):
        self.static_image_mode = static_image_mode
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence
        self._face_mesh = None
        self.last_detection_ms = 0.0

    def _ensure_started(self):
        if self._face_mesh is not None:
            return self._face_mesh
        try:
            import mediapipe as mp
        except ImportError as e:
            raise DetectorUnavailableError("MediaPipe is not installed") from e
        try:
            self._face_mesh = mp.solutions.face_mesh.FaceMesh(
                static_image_mode=self.static_image_mode,
                max_num_faces=1,
                refine_landmarks=False,
                min_detection_confidence=self.min_detection_confidence,
                min_tracking_confidence=self.min_tracking_confidence,
            )
        except Exception as e:
            logging.error(f"Error starting MediaPipe Face Mesh: {e}", exc_info=True)
            raise DetectorUnavailableError(f"Face Mesh failed to start: {e}") from e
        logging.info("MediaPipe Face Mesh initialized successfully")
        return self._face_mesh

    @property
    def available(self) -> bool:
        try:
            self._ensure_started()
            return True
        except DetectorUnavailableError:
            return False

    def detect(self, image: np.ndarray) -> Optional[LandmarkFrame]:
        """Run Face Mesh on an RGB image"""
        face_mesh = self._ensure_started()
        started = time.perf_counter()
        try:
            results = face_mesh.process(image)
        except Exception as e:
            logging.error(f"Error in MediaPipe detection: {e}", exc_info=True)
            return None
        finally:
            self.last_detection_ms = (time.perf_counter() - started) * 1000

        if not results.multi_face_landmarks:
            return None
        return parse_frame(results.multi_face_landmarks[0].landmark)

    def close(self):
        if self._face_mesh is not None:
            self._face_mesh.close()
            self._face_mesh = None
