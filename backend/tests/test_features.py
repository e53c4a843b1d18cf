"""Unit tests for landmark frames and geometric features"""
import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import features as fx
from exceptions import MalformedFrameError
from landmarks import FaceLandmark as L, LandmarkFrame, parse_frame
from synthetic_faces import face_with, neutral_face, neutral_points


class TestLandmarkFrame:
    """Test cases for frame validation"""

    def test_full_frame(self):
        frame = neutral_face()
        assert len(frame) == 468
        assert frame[L.NOSE_TIP].y == pytest.approx(0.5)
        assert frame[L.NOSE_TIP].z == pytest.approx(-0.05)

    def test_refined_mesh_is_truncated(self):
        """478-point meshes (with iris points) keep the first 468"""
        frame = LandmarkFrame(neutral_points(478))
        assert len(frame) == 468

    def test_short_frame_rejected(self):
        with pytest.raises(MalformedFrameError):
            LandmarkFrame(neutral_points(400))

    def test_non_finite_rejected(self):
        points = neutral_points()
        points[10, 1] = np.nan
        with pytest.raises(MalformedFrameError):
            LandmarkFrame(points)

    def test_frame_is_read_only(self):
        frame = neutral_face()
        with pytest.raises(ValueError):
            frame.points[0, 0] = 1.0

    def test_from_points_accepts_dicts_and_triples(self):
        dicts = [{"x": 0.5, "y": 0.5} for _ in range(468)]
        triples = [[0.5, 0.5, 0.0] for _ in range(468)]
        assert len(LandmarkFrame.from_points(dicts)) == 468
        assert len(LandmarkFrame.from_points(triples)) == 468

    def test_replace_returns_new_frame(self):
        frame = neutral_face()
        moved = frame.replace({L.CHIN: (0.5, 0.9, 0.0)})
        assert moved[L.CHIN].y == pytest.approx(0.9)
        assert frame[L.CHIN].y == pytest.approx(0.7)


class TestParseFrame:
    """Partial or corrupt input is treated as no face"""

    def test_none(self):
        assert parse_frame(None) is None

    def test_partial(self):
        assert parse_frame([{"x": 0.5, "y": 0.5, "z": 0}] * 100) is None

    def test_missing_coordinate(self):
        points = [{"x": 0.5, "y": 0.5, "z": 0}] * 467 + [{"x": 0.5}]
        assert parse_frame(points) is None

    def test_payload_round_trip(self):
        frame = parse_frame(neutral_face().to_list())
        assert frame is not None
        assert frame[L.MOUTH_LEFT].x == pytest.approx(0.44)

    def test_existing_frame_passes_through(self):
        frame = neutral_face()
        assert parse_frame(frame) is frame


class TestFeatures:
    """Test cases for geometric measurements on the neutral face"""

    def setup_method(self):
        self.frame = neutral_face()

    def test_distances(self):
        assert fx.distance(self.frame, L.MOUTH_LEFT, L.MOUTH_RIGHT) == pytest.approx(0.12)
        assert fx.horizontal_distance(self.frame, L.LEFT_CHEEK, L.RIGHT_CHEEK) == pytest.approx(0.24)
        assert fx.vertical_distance(self.frame, L.CHIN, L.NOSE_TIP) == pytest.approx(0.2)
        assert fx.depth_difference(self.frame, L.NOSE_TIP, L.CHIN) == pytest.approx(-0.05)

    def test_eye_openings(self):
        left, right = fx.eye_openings(self.frame)
        assert left == pytest.approx(0.03)
        assert right == pytest.approx(0.03)

    def test_mouth_measurements(self):
        assert fx.mouth_width(self.frame) == pytest.approx(0.12)
        assert fx.mouth_opening(self.frame) == pytest.approx(0.01)
        assert fx.lip_height(self.frame) == pytest.approx(0.03)
        assert fx.mouth_corner_lift(self.frame) == pytest.approx(0.0)

    def test_brow_heights(self):
        left, right = fx.brow_heights(self.frame)
        assert left == pytest.approx(0.135)
        assert right == pytest.approx(0.135)
        assert fx.brow_pinch(self.frame) == pytest.approx(0.10)
        assert fx.brow_asymmetry(self.frame) == pytest.approx(0.0)

    def test_jaw_ratio(self):
        assert fx.jaw_ratio(self.frame) == pytest.approx(4.0)

    def test_jaw_ratio_zero_height(self):
        frame = face_with({L.JAW_CENTER: (0.5, 0.70, 0.0)})
        assert fx.jaw_ratio(frame) == float("inf")

    def test_nose_and_cheeks(self):
        assert fx.nose_length(self.frame) == pytest.approx(0.10)
        assert fx.nose_width(self.frame) == pytest.approx(0.06)
        assert fx.nostril_positions(self.frame) == pytest.approx((0.47, 0.53))
        assert fx.cheek_protrusion(self.frame) == pytest.approx(0.0)

    def test_point_spread(self):
        assert fx.point_spread(self.frame, L.MOUTH_LEFT, L.MOUTH_RIGHT) == pytest.approx(0.0)
        assert fx.point_spread(self.frame, L.FOREHEAD_TOP, L.CHIN) > 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
