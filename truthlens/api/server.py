import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from truthlens.config import settings
from truthlens.database import Base, SessionLocal, engine
from truthlens.exceptions import NotFoundError, TruthLensError, UnknownError, ValidationError
from truthlens.schemas.analyze_schemas import CONTENT_TYPES, AnalyzeRequest, AnalyzeResponse, BatchRequest, BatchResponse
from truthlens.schemas.media_schemas import (
    DetectLanguageRequest,
    GenerateVideoRequest,
    SpeechToTextRequest,
    TranslateRequest,
    VisionOcrRequest,
)
from truthlens.pipelines.analysis_pipeline import AnalysisPipeline
from truthlens.services.gemini_client import GeminiClient
from truthlens.services.kv_store import KeyValueStore
from truthlens.services.speech_service import SpeechToTextService
from truthlens.services.translation_service import COMMON_LANGUAGES, TranslationService
from truthlens.services.video_service import VIDEO_TEMPLATES, VideoGenerationService
from truthlens.services.vision_service import VisionService
from truthlens.api.security import verify_bearer_token, check_rate_limit
from truthlens.api.admin import router as admin_router
from truthlens.utils.logging_config import metrics, request_id_var, StructuredLogger, init_logging

# Initialize structured logging
init_logging()

logger = StructuredLogger(__name__)

VERSION = "0.1.0"


# ============== DEPENDENCIES ==============


def get_pipeline(request: Request) -> AnalysisPipeline:
    return request.app.state.pipeline


def get_gateway(request: Request) -> GeminiClient:
    return request.app.state.gateway


def get_translation(request: Request) -> TranslationService:
    return request.app.state.translation


def get_speech(request: Request) -> SpeechToTextService:
    return request.app.state.speech


def get_vision(request: Request) -> VisionService:
    return request.app.state.vision


def get_video(request: Request) -> VideoGenerationService:
    return request.app.state.video


@contextmanager
def service_errors(operation: str):
    """Report any non-client failure of an auxiliary call as `<operation> failed` (500)."""
    try:
        yield
    except (ValidationError, NotFoundError):
        raise
    except Exception as e:
        logger.error(f"{operation} failed", error=str(e), error_type=type(e).__name__)
        metrics.increment(f"errors.{operation.lower().replace(' ', '_')}")
        raise UnknownError(f"{operation} failed", details=str(e))


# ============== STATUS ROUTES ==============

# Not rate limited, so uptime probes never trip the analysis limit
status_router = APIRouter(dependencies=[Depends(verify_bearer_token)])


@status_router.get("/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": settings.service_name,
        "apiKeyConfigured": settings.api_key_configured,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


@status_router.get("/status")
def status_info():
    """API status and configuration info."""
    return {
        "status": "ok",
        "version": VERSION,
        "environment": settings.environment,
        "authEnabled": bool(settings.accepted_tokens),
        "rateLimit": {
            "requests": settings.rate_limit_requests,
            "windowSeconds": settings.rate_limit_window,
        },
        "supportedContentTypes": sorted(CONTENT_TYPES),
    }


# ============== ANALYSIS ROUTES ==============

router = APIRouter(dependencies=[Depends(verify_bearer_token)])


@router.get("/test-gemini", dependencies=[Depends(check_rate_limit)])
def test_gemini(gateway: GeminiClient = Depends(get_gateway)):
    """Run one real model analysis, without fallback, to check the upstream wiring."""
    try:
        analysis = gateway.analyze_text(
            "This is a test message to verify the AI analysis system is working correctly.",
            "Test context",
        )
    except Exception as e:
        logger.error("Gemini test failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e), "details": "Gemini service test failed"},
        )

    return {
        "success": True,
        "message": "Gemini service is working correctly",
        "sampleAnalysis": {
            "credibilityScore": analysis.credibility_score,
            "riskLevel": analysis.risk_level,
            "issuesCount": len(analysis.issues),
        },
    }


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    dependencies=[Depends(check_rate_limit)],
)
def analyze(body: AnalyzeRequest, pipeline: AnalysisPipeline = Depends(get_pipeline)):
    try:
        return pipeline.analyze(body.content, body.content_type, body.context)
    except TruthLensError:
        raise
    except Exception as e:
        logger.error("Analysis failed", exc_info=True, error=str(e))
        raise UnknownError("Analysis failed", details=str(e))


@router.get("/analysis/{analysis_id}")
def get_analysis(analysis_id: str, pipeline: AnalysisPipeline = Depends(get_pipeline)):
    with service_errors("Retrieve analysis"):
        return {"success": True, "data": pipeline.get_analysis(analysis_id)}


@router.get("/analyses")
def list_analyses(pipeline: AnalysisPipeline = Depends(get_pipeline)):
    with service_errors("Retrieve analyses"):
        return {"success": True, "data": pipeline.list_analyses()}


@router.post(
    "/analyze-batch",
    response_model=BatchResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(check_rate_limit)],
)
def analyze_batch(body: BatchRequest, pipeline: AnalysisPipeline = Depends(get_pipeline)):
    with service_errors("Batch analysis"):
        return pipeline.analyze_batch(body.items)


# ============== AUXILIARY ROUTES ==============


@router.post("/speech-to-text")
def speech_to_text(body: SpeechToTextRequest, speech: SpeechToTextService = Depends(get_speech)):
    if not body.audio_data:
        raise ValidationError("Audio data is required")
    with service_errors("Speech recognition"):
        result = speech.transcribe(body.audio_data, body.config)
    return {"success": True, "transcript": result.transcript, "confidence": result.confidence}


@router.post("/vision-ocr")
def vision_ocr(body: VisionOcrRequest, vision: VisionService = Depends(get_vision)):
    if not body.image_data:
        raise ValidationError("Image data is required")
    with service_errors("Vision analysis"):
        data = vision.annotate(body.image_data, body.features)
    return {"success": True, "data": data}


@router.post("/translate")
def translate(body: TranslateRequest, translation: TranslationService = Depends(get_translation)):
    if not body.text:
        raise ValidationError("Text is required")
    if not body.target_language:
        raise ValidationError("Target language is required")
    with service_errors("Translation"):
        result = translation.translate(body.text, body.target_language, body.source_language)
    return {
        "success": True,
        "translatedText": result.translated_text,
        "detectedLanguage": result.detected_language,
        "originalText": body.text,
    }


@router.post("/detect-language")
def detect_language(body: DetectLanguageRequest, translation: TranslationService = Depends(get_translation)):
    if not body.text:
        raise ValidationError("Text is required")
    with service_errors("Language detection"):
        result = translation.detect_language(body.text)
    return {"success": True, "language": result.language, "confidence": result.confidence}


@router.get("/languages")
def list_languages():
    return {"success": True, "data": [language.to_wire() for language in COMMON_LANGUAGES]}


@router.post("/generate-video")
def generate_video(body: GenerateVideoRequest, video: VideoGenerationService = Depends(get_video)):
    if body.story_prompt is None:
        raise ValidationError("Story prompt is required")
    with service_errors("Video generation"):
        result = video.generate(body.story_prompt, body.options)
    return {"success": True, "videoResult": result.to_wire()}


@router.get("/video/{video_id}")
def get_video_record(video_id: str, video: VideoGenerationService = Depends(get_video)):
    with service_errors("Retrieve video"):
        return {"success": True, "data": video.get_video(video_id)}


@router.get("/video-templates")
def list_video_templates():
    return {"success": True, "data": [template.to_wire() for template in VIDEO_TEMPLATES]}


# ============== APPLICATION ==============


def create_app(
    gateway: Optional[GeminiClient] = None,
    store: Optional[KeyValueStore] = None,
    translation: Optional[TranslationService] = None,
    speech: Optional[SpeechToTextService] = None,
    vision: Optional[VisionService] = None,
) -> FastAPI:
    """
    Build the API. Collaborators are created once here and shared through
    `app.state`; pass them in to swap implementations (tests, other stores).
    """
    if store is None:
        Base.metadata.create_all(bind=engine)
        store = KeyValueStore(SessionLocal)
    gateway = gateway or GeminiClient()

    app = FastAPI(
        title="TruthLens API",
        version=VERSION,
        description="AI-assisted misinformation detection API",
        docs_url="/docs" if settings.debug else None,  # Disable docs in production
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.gateway = gateway
    app.state.store = store
    app.state.pipeline = AnalysisPipeline(gateway, store)
    app.state.translation = translation or TranslationService()
    app.state.speech = speech or SpeechToTextService()
    app.state.vision = vision or VisionService()
    app.state.video = VideoGenerationService(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
        max_age=600,
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        if hasattr(request.state, "rate_limit_remaining"):
            response.headers["X-RateLimit-Limit"] = str(request.state.rate_limit_limit)
            response.headers["X-RateLimit-Remaining"] = str(request.state.rate_limit_remaining)
        return response

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(TruthLensError)
    async def truthlens_error_handler(request: Request, exc: TruthLensError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": errors})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    app.include_router(status_router, prefix=settings.api_prefix)
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(admin_router, prefix=settings.api_prefix)

    return app


app = create_app()
