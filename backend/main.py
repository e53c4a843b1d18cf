from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from typing import Any, Dict, Optional
import asyncio
import contextlib
import json
import logging
import time

from config import (API_HOST, API_PORT, CORS_ORIGINS, GAME_TICK_INTERVAL_SECONDS, LOG_LEVEL, MAX_IMAGE_SIZE,
                    MAX_SESSIONS, SESSION_TIMEOUT_SECONDS, STORE_PATH, STRESS_SAMPLE_INTERVAL_SECONDS, get_config)
from detector import FaceMeshDetector
from exceptions import DetectorUnavailableError, InvalidImageError, UnknownExerciseError
from exercises import EXERCISES
from games import GAMES
from metrics import metrics
from models import AnalyzeRequest, ErrorResponse, FrameRequest, SelectExerciseRequest
from scheduler import PeriodicTask
from session import FaceSession
from store import NamespacedStore, create_store
from utils import decode_image

# Configure logging first
logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
                    format='%(asctime)s - %(levelname)s - %(message)s')

app = FastAPI(title="FaceVibe API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

store = create_store(STORE_PATH)
detector = FaceMeshDetector()
sessions: Dict[str, FaceSession] = {}


def cleanup_sessions():
    """Drop sessions idle for longer than SESSION_TIMEOUT_SECONDS"""
    now = time.monotonic()
    expired = [sid for sid, s in sessions.items() if now - s.last_active > SESSION_TIMEOUT_SECONDS]
    for sid in expired:
        logging.info(f"Session expired: {sid}")
        del sessions[sid]


def get_session(session_id: str, create: bool = True) -> FaceSession:
    """Get or create the session for an id"""
    session = sessions.get(session_id)
    if session is not None:
        return session
    if not create:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")

    cleanup_sessions()
    if len(sessions) >= MAX_SESSIONS:
        oldest = min(sessions, key=lambda sid: sessions[sid].last_active)
        logging.warning(f"Session limit reached, evicting {oldest}")
        del sessions[oldest]

    session = FaceSession(session_id, NamespacedStore(store, session_id))
    sessions[session_id] = session
    logging.info(f"Session created: {session_id}")
    return session


def detect_frame(image_data: str):
    """Decode a base64 image and run the landmark detector on it"""
    image = decode_image(image_data, max_size=MAX_IMAGE_SIZE)
    frame = detector.detect(image)
    metrics.record_detection_time(detector.last_detection_ms)
    return frame


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    metrics.record_request()
    response = await call_next(request)
    if response.status_code >= 400:
        metrics.record_error(f"http_{response.status_code}")
    return response


@app.get("/")
async def root():
    return {"message": "FaceVibe API", "status": "running"}


@app.get("/health")
async def health():
    return {**metrics.get_health(), "sessions": len(sessions)}


@app.get("/metrics")
async def get_metrics():
    return metrics.get_stats()


@app.get("/config")
async def config():
    return get_config()


@app.get("/exercises")
async def list_exercises():
    return {"exercises": [e.to_dict() for e in EXERCISES.values()]}


@app.get("/games")
async def list_games():
    return {"games": [g.to_dict() for g in GAMES]}


@app.post("/sessions/{session_id}/exercise")
async def select_exercise(session_id: str, request: SelectExerciseRequest):
    session = get_session(session_id)
    try:
        exercise = session.select_exercise(request.name)
    except UnknownExerciseError as e:
        logging.warning(f"Rejected exercise selection for {session_id}: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    return {"exercise": exercise, "state": session.state().model_dump()}


@app.post("/sessions/{session_id}/frame")
async def process_frame(session_id: str, request: FrameRequest):
    """HTTP endpoint for one detector tick (alternative to WebSocket)"""
    session = get_session(session_id)
    return session.process_frame(request.landmarks).model_dump()


@app.post("/sessions/{session_id}/analyze")
async def analyze_image(session_id: str, request: AnalyzeRequest):
    """Run the server-side detector on an image, then process it as a frame"""
    session = get_session(session_id)
    try:
        frame = detect_frame(request.image)
    except InvalidImageError as e:
        logging.warning(f"Image decode error for {session_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except DetectorUnavailableError as e:
        logging.error(f"Detector unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e), headers={"Retry-After": "5"})
    return session.process_frame(frame).model_dump()


@app.post("/sessions/{session_id}/stress")
async def sample_stress(session_id: str):
    """Take one stress sample now; the WebSocket stream does this on a timer"""
    session = get_session(session_id, create=False)
    session.advance_game()
    session.sample_stress()
    return session.state().model_dump()


@app.post("/sessions/{session_id}/game/close")
async def close_game(session_id: str, instance_id: Optional[int] = None):
    session = get_session(session_id, create=False)
    result = session.close_game(instance_id=instance_id)
    return {
        "result": result.model_dump() if result else None,
        "state": session.state().model_dump(),
    }


@app.get("/sessions/{session_id}")
async def session_state(session_id: str):
    session = get_session(session_id, create=False)
    session.advance_game()
    return session.state().model_dump()


def error_reply(error: str, retryable: bool = False) -> Dict[str, Any]:
    return ErrorResponse(error=error, retryable=retryable).model_dump(exclude_none=True)


async def handle_message(session: FaceSession, message: Dict[str, Any]) -> Dict[str, Any]:
    """Apply one client message and build the reply"""
    kind = message.get("type", "frame")

    if kind == "frame":
        return {"type": "state", **session.process_frame(message.get("landmarks")).model_dump()}

    if kind == "image":
        try:
            frame = detect_frame(message.get("image", ""))
        except InvalidImageError as e:
            return error_reply(f"Image decode error: {e}", retryable=True)
        except DetectorUnavailableError as e:
            return error_reply(str(e), retryable=True)
        return {"type": "state", **session.process_frame(frame).model_dump()}

    if kind == "select_exercise":
        try:
            exercise = session.select_exercise(message.get("name", ""))
        except UnknownExerciseError as e:
            return error_reply(str(e))
        return {"type": "exercise", "exercise": exercise}

    if kind == "close_game":
        result = session.close_game(instance_id=message.get("instance_id"))
        return {"type": "game_closed", "result": result.model_dump() if result else None}

    return error_reply(f"Unknown message type: {kind}")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    try:
        await websocket.accept()
    except Exception as e:
        logging.error(f"Error accepting WebSocket connection: {e}", exc_info=True)
        return

    session_id = websocket.query_params.get("session_id") or str(id(websocket))
    session = get_session(session_id)
    outbox: asyncio.Queue = asyncio.Queue()
    session.on_event = outbox.put_nowait
    logging.info(f"WebSocket connection established: {session_id}")

    def game_tick():
        if session.game_active:
            snapshot = session.tick()
            outbox.put_nowait({"type": "game", "game": snapshot.model_dump()})

    stress_task = PeriodicTask(STRESS_SAMPLE_INTERVAL_SECONDS, session.sample_stress, name=f"stress-{session_id}")
    game_task = PeriodicTask(GAME_TICK_INTERVAL_SECONDS, game_tick, name=f"game-{session_id}")

    async def sender():
        while True:
            payload = await outbox.get()
            await websocket.send_json(payload)

    sender_task = asyncio.create_task(sender())
    stress_task.start()
    game_task.start()

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
                if not isinstance(message, dict):
                    raise ValueError("message must be a JSON object")
            except ValueError as e:
                logging.error(f"Error parsing data: {e}")
                metrics.record_error("ws_parse")
                outbox.put_nowait(error_reply("Data parsing error", retryable=True))
                continue
            outbox.put_nowait(await handle_message(session, message))
    except WebSocketDisconnect:
        logging.info(f"WebSocket client disconnected: {session_id}")
    except Exception as e:
        logging.error(f"WebSocket error for {session_id}: {e}", exc_info=True)
        metrics.record_error("ws_error")
        with contextlib.suppress(Exception):
            await websocket.close()
    finally:
        await stress_task.stop()
        await game_task.stop()
        sender_task.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await sender_task
        session.on_event = None


if __name__ == "__main__":
    import uvicorn
    print("=" * 50)
    print("FaceVibe Backend Server")
    print("=" * 50)
    print(f"Starting server on http://{API_HOST}:{API_PORT}")
    print(f"API Documentation: http://localhost:{API_PORT}/docs")
    print(f"Health Check: http://localhost:{API_PORT}/health")
    print("=" * 50)
    uvicorn.run(app, host=API_HOST, port=API_PORT)
