"""FastAPI backend for the interview practice coach."""

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from practice_coach.catalog import QuestionCatalog
from practice_coach.coaches import BaseCoach, create_coach
from practice_coach.config import Config
from practice_coach.errors import TranscriptionFailed, UpstreamUnavailable
from practice_coach.logging import get_logger
from practice_coach.models import AudioArtifact
from practice_coach.schema import degraded_feedback
from practice_coach.transcriber import OpenAITranscriber, Transcriber

logger = get_logger("api")

app = FastAPI(title="Interview Practice Coach")

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for problem in Config.validate():
    logger.warning("[Config] %s", problem)

# Global state
catalog = QuestionCatalog.load()
transcriber: Transcriber = OpenAITranscriber()

# Initialize coach based on configuration
try:
    coach: BaseCoach = create_coach(Config.COACH_TYPE)
    logger.info("Coach initialized: %s", Config.COACH_TYPE)
except ValueError as e:
    logger.error("%s Falling back to OpenAI coach...", e)
    coach = create_coach("openai")


# Request models
class AnalyzeRequest(BaseModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    role: str = Field(min_length=1)
    timeLimit: int = Field(ge=0)
    remainingTime: int = Field(ge=0)

    @field_validator("question", "answer", "role")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return PlainTextResponse("Not Found", status_code=404)
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in err.get("loc", [])[1:]) or "body" for err in exc.errors())
    return JSONResponse({"error": f"Invalid request: {fields}"}, status_code=400)


@app.get("/api/health")
async def health():
    return {"status": "ok", "coach": coach.name, "mock": Config.is_mock_mode()}


@app.get("/api/questions")
async def get_questions():
    """Return the full question catalog in order."""
    return [q.to_dict() for q in catalog]


@app.post("/api/transcribe")
async def transcribe(audio: Optional[UploadFile] = File(None)):
    """Relay one recorded answer to speech-to-text."""
    if audio is None:
        return JSONResponse({"error": "No audio file"}, status_code=400)

    container = Path(audio.filename or "answer.webm").suffix.lstrip(".").lower() or "webm"
    artifact = AudioArtifact(data=await audio.read(), container=container)

    try:
        text = await transcriber.transcribe(artifact)
    except TranscriptionFailed as e:
        return JSONResponse({"error": e.reason}, status_code=e.status_code or 500)
    except UpstreamUnavailable as e:
        return JSONResponse({"error": e.reason}, status_code=502)

    return {"text": text}


@app.post("/api/analyze")
async def analyze(request: AnalyzeRequest):
    """Evaluate an answer. Analysis failures still return 200 with degraded feedback."""
    try:
        feedback = await coach.analyze(
            question=request.question,
            answer_text=request.answer,
            role=request.role,
            time_limit_seconds=request.timeLimit,
            remaining_seconds=request.remainingTime,
        )
    except Exception as e:
        logger.exception("[AI Analysis] Unexpected error")
        feedback = degraded_feedback("Service Unavailable", str(e), request.answer)

    return {"feedback": feedback.to_dict()}
