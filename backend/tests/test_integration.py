"""Integration tests for the FaceVibe API"""
import pytest
import base64
import random
import cv2
import numpy as np
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from main import app, sessions
from session import FaceSession
from store import MemoryStore
import synthetic_faces as faces

client = TestClient(app)


class TestAPIEndpoints:
    """Integration tests for API endpoints"""

    def create_test_image(self) -> str:
        """Create a plain gray test image as a base64 data URL"""
        img = np.full((480, 640, 3), 128, dtype=np.uint8)
        ok, encoded = cv2.imencode(".jpg", img)
        assert ok
        img_data = base64.b64encode(encoded.tobytes()).decode('utf-8')
        return f"data:image/jpeg;base64,{img_data}"

    def test_root_endpoint(self):
        """Test root endpoint"""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert "message" in data
        assert "status" in data

    def test_health_endpoint(self):
        """Test health endpoint"""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] in ["healthy", "degraded", "no_frames"]
        assert "sessions" in data

    def test_metrics_endpoint(self):
        """Test metrics endpoint"""
        response = client.get("/metrics")
        assert response.status_code == 200
        data = response.json()
        assert "total_requests" in data
        assert "frames_processed" in data

    def test_config_endpoint(self):
        response = client.get("/config")
        assert response.status_code == 200
        assert response.json()["exercise_completion_streak"] == 15

    def test_catalogue_endpoints(self):
        exercises = client.get("/exercises").json()["exercises"]
        games = client.get("/games").json()["games"]
        assert len(exercises) == 10
        assert len(games) == 10
        assert {"name", "instructions", "benefits", "visual_direction", "focus_points"} <= set(exercises[0])

    def test_frame_endpoint(self):
        response = client.post("/sessions/api-frame/frame", json={"landmarks": faces.jaw_dropped().to_list()})
        assert response.status_code == 200
        data = response.json()
        assert data["session_id"] == "api-frame"
        assert data["face_visible"]
        assert data["exercise"]["success"]
        assert data["exercise"]["streak"] == 1
        assert data["game"]["phase"] == "idle"

    def test_frame_without_face(self):
        response = client.post("/sessions/api-noface/frame", json={"landmarks": None})
        assert response.status_code == 200
        data = response.json()
        assert not data["face_visible"]
        assert data["exercise"] is None

    def test_partial_frame_is_no_face(self):
        points = faces.neutral_face().to_list()[:100]
        response = client.post("/sessions/api-partial/frame", json={"landmarks": points})
        assert response.status_code == 200
        assert not response.json()["face_visible"]

    def test_malformed_frame_resets_streak(self):
        for _ in range(5):
            client.post("/sessions/api-malformed/frame", json={"landmarks": faces.jaw_dropped().to_list()})
        assert sessions["api-malformed"].tracker.success_streak == 5

        points = faces.jaw_dropped().to_list()
        del points[10]["y"]
        response = client.post("/sessions/api-malformed/frame", json={"landmarks": points})
        assert response.status_code == 200
        assert not response.json()["face_visible"]
        assert sessions["api-malformed"].tracker.success_streak == 0

        points = faces.jaw_dropped().to_list()
        points[3]["x"] = "left"
        response = client.post("/sessions/api-malformed/frame", json={"landmarks": points})
        assert response.status_code == 200
        assert not response.json()["face_visible"]

    def test_select_exercise(self):
        response = client.post("/sessions/api-select/exercise", json={"name": "Lip Pucker"})
        assert response.status_code == 200
        data = response.json()
        assert data["exercise"]["name"] == "Lip Pucker"
        assert data["state"]["summary"]["exerciseName"] == "Lip Pucker"

    def test_select_unknown_exercise(self):
        response = client.post("/sessions/api-select/exercise", json={"name": "Ear Wiggler"})
        assert response.status_code == 404

    def test_session_state(self):
        client.post("/sessions/api-state/frame", json={"landmarks": faces.neutral_face().to_list()})
        response = client.get("/sessions/api-state")
        assert response.status_code == 200
        assert response.json()["session_id"] == "api-state"

    def test_unknown_session(self):
        assert client.get("/sessions/never-seen").status_code == 404
        assert client.post("/sessions/never-seen/game/close").status_code == 404

    def test_stress_sample(self):
        client.post("/sessions/api-stress/frame", json={"landmarks": faces.neutral_face().to_list()})
        response = client.post("/sessions/api-stress/stress")
        assert response.status_code == 200
        stress = response.json()["game"]["stress"]
        assert 0.0 <= stress <= 1.0
        assert stress > 0

    def test_close_without_game(self):
        client.post("/sessions/api-close/frame", json={"landmarks": None})
        response = client.post("/sessions/api-close/game/close")
        assert response.status_code == 200
        assert response.json()["result"] is None

    def test_analyze_endpoint_valid_image(self):
        """A gray image has no face; 503 when the detector is not installed"""
        response = client.post("/sessions/api-analyze/analyze", json={"image": self.create_test_image()})
        assert response.status_code in [200, 503]
        if response.status_code == 200:
            assert not response.json()["face_visible"]

    def test_analyze_endpoint_invalid_image(self):
        """Test analyze endpoint with invalid image"""
        response = client.post("/sessions/api-analyze/analyze", json={"image": "invalid_base64"})
        assert response.status_code == 400


class TestHTTPGame:
    """A game started over HTTP runs to completion without the WebSocket timers"""

    def setup_method(self):
        self.now = 0.0
        sessions["http-game"] = FaceSession(
            "http-game",
            MemoryStore(),
            rng=random.Random(5),
            clock=lambda: self.now,
            jitter=0,
            trigger_probability=1.0,
        )

    def teardown_method(self):
        sessions.pop("http-game", None)

    def test_game_resolves_and_closes(self):
        stressed = faces.stressed_face().to_list()
        client.post("/sessions/http-game/frame", json={"landmarks": stressed})
        for i in range(5):
            self.now = i * 2.0
            game = client.post("/sessions/http-game/stress").json()["game"]
        assert game["phase"] == "active"
        assert game["progress"] == 0.0
        started_at = self.now

        self.now = started_at + 1000
        game = client.post("/sessions/http-game/frame", json={"landmarks": stressed}).json()["game"]
        assert game["phase"] == "resolved"
        assert game["progress"] == 100.0

        self.now += 5
        game = client.get("/sessions/http-game").json()["game"]
        assert game["phase"] == "idle"
        session = sessions["http-game"]
        assert session.engine.last_game_end_time == self.now
        assert session.last_game_result is not None


class TestWebSocket:
    """Integration tests for the WebSocket frame stream"""

    def test_frame_message(self):
        with client.websocket_connect("/ws?session_id=ws-frame") as websocket:
            websocket.send_json({"type": "frame", "landmarks": faces.jaw_dropped().to_list()})
            data = websocket.receive_json()
            assert data["type"] == "state"
            assert data["session_id"] == "ws-frame"
            assert data["exercise"]["success"]

    def test_select_and_errors(self):
        with client.websocket_connect("/ws?session_id=ws-select") as websocket:
            websocket.send_json({"type": "select_exercise", "name": "Brow Lifter"})
            assert websocket.receive_json()["exercise"]["name"] == "Brow Lifter"

            websocket.send_json({"type": "select_exercise", "name": "Ear Wiggler"})
            error = websocket.receive_json()
            assert error["type"] == "error"
            assert not error["retryable"]

            websocket.send_text("not json")
            assert websocket.receive_json()["error"] == "Data parsing error"

    def test_close_game_message(self):
        with client.websocket_connect("/ws?session_id=ws-close") as websocket:
            websocket.send_json({"type": "close_game"})
            data = websocket.receive_json()
            assert data == {"type": "game_closed", "result": None}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
