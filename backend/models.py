"""Data models for the FaceVibe backend"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Any
from datetime import datetime


class FrameRequest(BaseModel):
    """Request model for one detector tick"""
    # Left loose: a partial or corrupt frame is read as "no face", not rejected
    landmarks: Optional[Any] = Field(None, description="468 face mesh points, or null when no face")


class AnalyzeRequest(BaseModel):
    """Request model for image analysis"""
    image: str = Field(..., description="Base64 encoded image data")


class SelectExerciseRequest(BaseModel):
    name: str = Field(..., description="Exercise display name, e.g. 'Jaw Dropper'")


class ExerciseFeedback(BaseModel):
    """Result of evaluating one frame against the selected exercise"""
    exercise: str
    success: bool
    progress: float = 0.0  # how close this frame came, 0..1
    message: str = ""
    streak: int = 0
    progress_percent: int = 0
    completed: bool = False


class ProgressSummary(BaseModel):
    """What the chat assistant is given to phrase its feedback"""
    exerciseName: str
    progressPercent: int


class DailyProgress(BaseModel):
    date: str
    completed: List[str] = []


class StreakRecord(BaseModel):
    streak: int = 0
    lastExerciseDate: Optional[str] = None


class ResilienceRecord(BaseModel):
    date: str
    exercises: int
    stress: float
    resilience: float


class GameResult(BaseModel):
    game_id: str
    name: str
    success: bool
    message: str
    instance_id: int


class GameSnapshot(BaseModel):
    """State of the stress/game engine as shown to the UI"""
    phase: str
    stress: float
    stress_level: str
    trend: str
    face_visible: bool
    game_id: Optional[str] = None
    game_name: Optional[str] = None
    instructions: Optional[str] = None
    instance_id: Optional[int] = None
    progress: float = 0.0
    requirement_met: bool = False
    success: Optional[bool] = None
    message: Optional[str] = None


class SessionState(BaseModel):
    """Complete per-session response"""
    timestamp: str
    session_id: str
    face_visible: bool
    exercise: Optional[Dict[str, Any]] = None
    game: Dict[str, Any]
    exercises_today: int
    streak: int
    resilience: Optional[Dict[str, Any]] = None
    summary: Dict[str, Any]
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response model"""
    type: str = "error"
    error: str
    retryable: bool = False
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    details: Optional[Dict[str, Any]] = None
