"""Unit tests for mini-game definitions and validators"""
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from exceptions import UnknownGameError
from games import (GAMES, GAMES_BY_ID, GameScratch, candidate_games, get_game, validate_breath_blast,
                   validate_brow_chill, validate_eye_rest, validate_face_freeze, validate_jaw_jiggle,
                   validate_nose_flare, validate_smile)
from landmarks import FaceLandmark as L
import synthetic_faces as faces


class TestGameCatalogue:
    """Test cases for the game list"""

    def test_ten_games(self):
        assert len(GAMES) == 10
        assert len(GAMES_BY_ID) == 10

    def test_durations(self):
        assert get_game("eye-rest").duration_seconds == 5
        assert get_game("face-freeze").duration_seconds == 15
        assert get_game("smile-snipe").duration_seconds == 30

    def test_unknown_game(self):
        with pytest.raises(UnknownGameError):
            get_game("ear-wiggle")

    def test_candidates_exclude_hard_games_when_extreme(self):
        picked = candidate_games(GAMES, 0.95, 0.9)
        assert picked
        assert all(g.difficulty != "hard" for g in picked)
        assert len(candidate_games(GAMES, 0.8, 0.9)) == 10

    def test_candidates_fall_back_to_full_list(self):
        hard_only = [get_game("jaw-jiggle"), get_game("nose-flare")]
        assert candidate_games(hard_only, 0.95, 0.9) == hard_only


class TestGameValidators:
    """Test cases for the per-tick game validators"""

    def setup_method(self):
        self.scratch = GameScratch(1)

    def test_smile(self):
        assert validate_smile(faces.wide_smile(), 0, self.scratch)
        assert not validate_smile(faces.neutral_face(), 0, self.scratch)

    def test_brow_chill(self):
        assert validate_brow_chill(faces.neutral_face(), 0, self.scratch)
        assert not validate_brow_chill(faces.brows_raised(), 0, self.scratch)

    def test_breath_blast_follows_cycle(self):
        opened, closed = faces.jaw_dropped(), faces.neutral_face()
        assert validate_breath_blast(opened, 500, self.scratch)
        assert not validate_breath_blast(closed, 500, self.scratch)
        assert validate_breath_blast(closed, 2500, self.scratch)
        assert not validate_breath_blast(opened, 2500, self.scratch)
        assert validate_breath_blast(opened, 4500, self.scratch)

    def test_eye_rest(self):
        assert validate_eye_rest(faces.eyes_closed(), 0, self.scratch)
        assert not validate_eye_rest(faces.neutral_face(), 0, self.scratch)
        assert not validate_eye_rest(faces.left_wink(), 0, self.scratch)

    def test_jaw_jiggle_counts_swings(self):
        up = faces.neutral_face()
        down = faces.face_with({L.CHIN: (0.5, 0.75, 0.0)})
        results = []
        for i in range(21):
            results.append(validate_jaw_jiggle(down if i % 2 else up, i * 50, self.scratch))
        assert self.scratch["jiggles"] >= 10
        assert results[-1]
        assert not results[1]

    def test_jaw_jiggle_still_chin(self):
        frame = faces.neutral_face()
        for i in range(20):
            assert not validate_jaw_jiggle(frame, i * 50, self.scratch)
        assert self.scratch.get("jiggles", 0) == 0

    def test_nose_flare_counts_flares(self):
        rest = faces.neutral_face()
        flared = faces.face_with({L.LEFT_NOSTRIL: (0.45, 0.50, 0.0), L.RIGHT_NOSTRIL: (0.55, 0.50, 0.0)})
        result = False
        for i in range(11):
            result = validate_nose_flare(flared if i % 2 else rest, i * 50, self.scratch)
        assert self.scratch["flares"] >= 5
        assert result

    def test_face_freeze(self):
        frame = faces.neutral_face()
        assert validate_face_freeze(frame, 0, self.scratch)
        assert validate_face_freeze(frame, 50, self.scratch)
        moved = faces.face_with({L.NOSE_TIP: (0.52, 0.50, -0.05)})
        assert not validate_face_freeze(moved, 100, self.scratch)

    def test_scratch_is_per_instance(self):
        validate_jaw_jiggle(faces.neutral_face(), 0, self.scratch)
        fresh = GameScratch(2)
        assert "prev_chin_y" in self.scratch
        assert "prev_chin_y" not in fresh
        self.scratch.clear()
        assert len(self.scratch) == 0

    def test_forget_positions_keeps_counts(self):
        self.scratch["prev_chin_y"] = 0.7
        self.scratch["prev_nostrils"] = (0.47, 0.53)
        self.scratch["jiggles"] = 3
        self.scratch.forget_positions()
        assert "prev_chin_y" not in self.scratch
        assert "prev_nostrils" not in self.scratch
        assert self.scratch["jiggles"] == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
