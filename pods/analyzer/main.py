"""Analyzer Pod - Tempo and key estimation service for keytempo.

Decodes uploaded audio, resamples it to the analysis rate and exposes the
tempo/key analysis over HTTP.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Tuple

import numpy as np
from fastapi import FastAPI, UploadFile, File, HTTPException
from opentelemetry import trace
from pydantic import BaseModel, Field

from config import Config
from ktcore.audio import duration_seconds, first_channel, read_audio_bytes, resample
from ktcore.logging import setup_logging, setup_tracing
from ktfeatures.analyzer import analyze_async, prepare_samples
from ktfeatures.bpm_detection import detect_bpm
from ktfeatures.errors import InvalidInputError
from ktfeatures.key_detection import detect_key
from ktfeatures.params import AnalysisParams

logger = logging.getLogger(__name__)
tracer = trace.get_tracer("keytempo.analyzer")


# ============================================================================
# Startup/Shutdown
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    if Config.OTEL_ENABLED:
        setup_tracing(service_name=f"keytempo-{Config.SERVICE_NAME}")
    logger.info(f"{Config.SERVICE_NAME} pod starting (v{Config.SERVICE_VERSION})")
    yield
    logger.info(f"{Config.SERVICE_NAME} pod shutting down")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Analyzer Pod",
    description="Tempo and key estimation service for keytempo",
    version=Config.SERVICE_VERSION,
    lifespan=lifespan,
)


# ============================================================================
# Request/Response Models
# ============================================================================

class KeyCandidateModel(BaseModel):
    """One ranked key guess."""

    key: str = Field(..., description="Tonic pitch class, sharp spelling (C, C#, ... B)")
    mode: str = Field(..., description="'major' or 'minor'")
    confidence: float = Field(..., ge=0.0, le=1.0)


class KeyDetectionResponse(BaseModel):
    """Response from key detection endpoint."""

    key: str = Field(..., description="Top candidate label, e.g. 'A minor'")
    confidence: float = Field(..., ge=0.0, le=1.0)
    candidates: List[KeyCandidateModel]


class BPMDetectionResponse(BaseModel):
    """Response from BPM detection endpoint."""

    bpm: int
    confidence: float = Field(..., ge=0.0, le=1.0)
    alternatives: List[int] = Field(default_factory=list)
    status: str = Field(..., description="'ok', 'insufficient_signal' or 'no_peak'")


class AnalysisResponse(BaseModel):
    """Complete audio analysis response."""

    bpm: int
    bpm_confidence: float = Field(..., ge=0.0, le=1.0)
    bpm_alternatives: List[int] = Field(default_factory=list)
    key_candidates: List[KeyCandidateModel]
    tempo_status: str
    sample_rate: int
    duration_sec: float


# ============================================================================
# Helpers
# ============================================================================

async def _load_audio(file: UploadFile) -> Tuple[np.ndarray, int, float]:
    """Decode, reduce and resample an upload. Returns (audio, sample_rate, duration)."""
    audio_bytes = await file.read()
    if len(audio_bytes) > Config.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=400, detail="Upload too large")

    try:
        audio, sr = read_audio_bytes(audio_bytes)
    except ValueError as e:
        logger.warning(f"Decode failed for {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=f"Failed to decode audio: {e}")

    audio = first_channel(audio)
    if duration_seconds(audio, sr) > Config.MAX_AUDIO_DURATION:
        raise HTTPException(
            status_code=400,
            detail=f"Audio longer than {Config.MAX_AUDIO_DURATION}s",
        )

    if Config.TARGET_SAMPLE_RATE and sr != Config.TARGET_SAMPLE_RATE:
        logger.debug(f"Resampling {sr} Hz -> {Config.TARGET_SAMPLE_RATE} Hz")
        audio = resample(audio, sr, Config.TARGET_SAMPLE_RATE)
        sr = Config.TARGET_SAMPLE_RATE

    try:
        audio = prepare_samples(audio, sr)
    except InvalidInputError as e:
        logger.warning(f"Invalid input: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    return audio, sr, duration_seconds(audio, sr)


# ============================================================================
# Endpoints
# ============================================================================

@app.post("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "service": Config.SERVICE_NAME}


@app.post("/analyze/key", response_model=KeyDetectionResponse)
async def analyze_key(file: UploadFile = File(...)):
    """Detect musical key from audio file.

    Args:
        file: Audio file (WAV, FLAC, OGG)

    Returns:
        JSON with the top key, its confidence and all ranked candidates
    """
    try:
        audio, sr, duration = await _load_audio(file)
        params = AnalysisParams()

        with tracer.start_as_current_span("analyzer.key") as span:
            span.set_attribute("audio.sample_rate", sr)
            span.set_attribute("audio.duration_sec", duration)
            candidates = await asyncio.to_thread(
                detect_key, audio, sr, params.chroma_frame_size, params.chroma_hop_size
            )
            top = candidates[0]
            span.set_attribute("result.key", top.label)

        return {
            "key": top.label,
            "confidence": top.confidence,
            "candidates": [k.to_dict() for k in candidates],
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Key detection error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.post("/analyze/bpm", response_model=BPMDetectionResponse)
async def analyze_bpm(file: UploadFile = File(...)):
    """Detect tempo (BPM) from audio file.

    Args:
        file: Audio file (WAV, FLAC, OGG)

    Returns:
        JSON with BPM, confidence, alternatives and tempo status
    """
    try:
        audio, sr, duration = await _load_audio(file)
        params = AnalysisParams()

        with tracer.start_as_current_span("analyzer.bpm") as span:
            span.set_attribute("audio.sample_rate", sr)
            span.set_attribute("audio.duration_sec", duration)
            bpm_result = await asyncio.to_thread(
                detect_bpm, audio, sr, params.onset_frame_size, params.onset_hop_size
            )
            span.set_attribute("result.bpm", bpm_result.bpm)

        return {
            "bpm": bpm_result.bpm,
            "confidence": bpm_result.confidence,
            "alternatives": list(bpm_result.alternatives),
            "status": bpm_result.status.value,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"BPM detection error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@app.post("/analyze", response_model=AnalysisResponse)
async def analyze_full(file: UploadFile = File(...)):
    """Full audio analysis (tempo and key).

    Args:
        file: Audio file (WAV, FLAC, OGG)

    Returns:
        JSON with all analysis fields
    """
    try:
        audio, sr, duration = await _load_audio(file)

        with tracer.start_as_current_span("analyzer.analyze") as span:
            span.set_attribute("audio.sample_rate", sr)
            span.set_attribute("audio.duration_sec", duration)
            result = await analyze_async(audio, sr, AnalysisParams())
            span.set_attribute("result.bpm", result.bpm)
            span.set_attribute("result.key", result.top_key.label)

        payload = result.to_dict()
        payload["sample_rate"] = sr
        payload["duration_sec"] = duration
        return payload

    except HTTPException:
        raise
    except InvalidInputError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Full analysis error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


# ============================================================================
# Root
# ============================================================================

@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "service": Config.SERVICE_NAME,
        "version": Config.SERVICE_VERSION,
        "endpoints": {
            "health": "POST /health",
            "analyze_key": "POST /analyze/key",
            "analyze_bpm": "POST /analyze/bpm",
            "analyze_full": "POST /analyze",
        }
    }


# ============================================================================
# Logging Setup
# ============================================================================

if __name__ == "__main__":
    setup_logging(Config.LOG_LEVEL)
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=Config.SERVICE_PORT,
        reload=Config.ENV == "dev",
    )
