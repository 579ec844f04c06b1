import logging
from typing import List, Optional

import requests

from truthlens.config import settings
from truthlens.exceptions import UpstreamParseError
from truthlens.schemas.media_schemas import Language, LanguageDetection, TranslationResult
from truthlens.services.google_api import post_json

logger = logging.getLogger(__name__)


COMMON_LANGUAGES: List[Language] = [
    Language(code="en", name="English", native_name="English"),
    Language(code="hi", name="Hindi", native_name="हिन्दी"),
    Language(code="bn", name="Bengali", native_name="বাংলা"),
    Language(code="te", name="Telugu", native_name="తెలుగు"),
    Language(code="mr", name="Marathi", native_name="मराठी"),
    Language(code="ta", name="Tamil", native_name="தமிழ்"),
    Language(code="ur", name="Urdu", native_name="اردو"),
    Language(code="gu", name="Gujarati", native_name="ગુજરાતી"),
    Language(code="kn", name="Kannada", native_name="ಕನ್ನಡ"),
    Language(code="ml", name="Malayalam", native_name="മലയാളം"),
    Language(code="or", name="Odia", native_name="ଓଡ଼ିଆ"),
    Language(code="pa", name="Punjabi", native_name="ਪੰਜਾਬੀ"),
    Language(code="as", name="Assamese", native_name="অসমীয়া"),
    Language(code="ne", name="Nepali", native_name="नेपाली"),
    Language(code="si", name="Sinhala", native_name="සිංහල"),
    Language(code="my", name="Myanmar", native_name="မြန်မာ"),
    Language(code="th", name="Thai", native_name="ไทย"),
    Language(code="vi", name="Vietnamese", native_name="Tiếng Việt"),
    Language(code="id", name="Indonesian", native_name="Bahasa Indonesia"),
    Language(code="ms", name="Malay", native_name="Bahasa Melayu"),
    Language(code="zh", name="Chinese", native_name="中文"),
    Language(code="ar", name="Arabic", native_name="العربية"),
    Language(code="es", name="Spanish", native_name="Español"),
    Language(code="fr", name="French", native_name="Français"),
    Language(code="de", name="German", native_name="Deutsch"),
    Language(code="ja", name="Japanese", native_name="日本語"),
    Language(code="ko", name="Korean", native_name="한국어"),
    Language(code="pt", name="Portuguese", native_name="Português"),
    Language(code="ru", name="Russian", native_name="Русский"),
    Language(code="it", name="Italian", native_name="Italiano"),
    Language(code="tr", name="Turkish", native_name="Türkçe"),
]


def format_language_display(code: str) -> str:
    """'hi' -> 'Hindi (हिन्दी)'; unknown codes are returned unchanged."""
    for language in COMMON_LANGUAGES:
        if language.code == code:
            return f"{language.name} ({language.native_name})"
    return code


class TranslationService:
    """Google Cloud Translation v2 over REST."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = settings.google_cloud_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.translation_base_url).rstrip("/")
        self.timeout = timeout or settings.upstream_timeout_seconds
        self.session = session or requests.Session()

    def translate(
        self,
        text: str,
        target_language: str,
        source_language: Optional[str] = None,
    ) -> TranslationResult:
        payload = {"q": text, "target": target_language, "format": "text"}
        if source_language and source_language != "auto":
            payload["source"] = source_language

        data = post_json(self.session, self.base_url, self.api_key, payload, self.timeout, "Translation")
        try:
            translation = data["data"]["translations"][0]
        except (KeyError, IndexError, TypeError):
            raise UpstreamParseError("Translation API response has no translations", body=str(data)[:500])

        return TranslationResult(
            translated_text=translation.get("translatedText", ""),
            # Only present when the source language was auto-detected
            detected_language=translation.get("detectedSourceLanguage") or source_language,
        )

    def detect_language(self, text: str) -> LanguageDetection:
        data = post_json(
            self.session, f"{self.base_url}/detect", self.api_key, {"q": text}, self.timeout, "Language detection"
        )
        try:
            detection = data["data"]["detections"][0][0]
        except (KeyError, IndexError, TypeError):
            raise UpstreamParseError("Language detection response has no detections", body=str(data)[:500])

        return LanguageDetection(
            language=detection.get("language", "und"),
            confidence=detection.get("confidence") or 0.5,
        )
