from pydantic import Field, model_validator
from typing import Any, Dict, List, Literal, Optional

from truthlens.schemas.analyze_schemas import CamelModel, StoryPrompt


# ============== TRANSLATION ==============


class TranslateRequest(CamelModel):
    text: Optional[str] = None
    target_language: Optional[str] = None
    source_language: Optional[str] = None  # None or "auto" = let the API detect


class TranslationResult(CamelModel):
    translated_text: str
    detected_language: Optional[str] = None


class DetectLanguageRequest(CamelModel):
    text: Optional[str] = None


class LanguageDetection(CamelModel):
    language: str
    confidence: float = 0.5


class Language(CamelModel):
    code: str
    name: str
    native_name: str


# ============== SPEECH / VISION ==============


class SpeechToTextRequest(CamelModel):
    audio_data: Optional[str] = None  # base64
    config: Optional[Dict[str, Any]] = None


class Transcription(CamelModel):
    transcript: str = ""
    confidence: float = 0.0


class VisionOcrRequest(CamelModel):
    image_data: Optional[str] = None  # base64
    features: Optional[List[Dict[str, Any]]] = None


# ============== VIDEO ==============


VideoStatus = Literal["generating", "completed", "failed"]


class VideoGenerationOptions(CamelModel):
    duration: int = 120  # seconds
    quality: Literal["low", "medium", "high"] = "medium"
    style: Literal["educational", "dramatic", "informative"] = "educational"
    include_subtitles: bool = True
    language: str = "en"
    template: Optional[str] = None  # VideoTemplate id; renders a script into the record


class GenerateVideoRequest(CamelModel):
    story_prompt: Optional[StoryPrompt] = None
    options: Optional[VideoGenerationOptions] = None


class VideoResult(CamelModel):
    video_id: str
    video_url: str
    thumbnail_url: str
    duration: int
    size: int  # bytes
    status: VideoStatus
    progress: int = Field(ge=0, le=100)
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_terminal_state(self):
        if self.status == "failed" and not self.error:
            raise ValueError("failed video results must carry an error")
        if self.progress == 100 and self.status == "generating":
            raise ValueError("progress 100 requires a terminal status")
        return self


class VideoTemplate(CamelModel):
    id: str
    name: str
    description: str
    duration: int
    style: str
    thumbnail: str
