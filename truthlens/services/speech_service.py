from typing import Any, Dict, Optional

import requests

from truthlens.config import settings
from truthlens.schemas.media_schemas import Transcription
from truthlens.services.google_api import post_json


DEFAULT_RECOGNITION_CONFIG = {
    "encoding": "WEBM_OPUS",
    "sampleRateHertz": 48000,
    "languageCode": "en-IN",
    "enableAutomaticPunctuation": True,
    "model": "latest_long",
}


class SpeechToTextService:
    """Google Cloud Speech-to-Text (synchronous recognize) over REST."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = settings.google_cloud_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.speech_base_url).rstrip("/")
        self.timeout = timeout or settings.upstream_timeout_seconds
        self.session = session or requests.Session()

    def transcribe(self, audio_data: str, config: Optional[Dict[str, Any]] = None) -> Transcription:
        """
        Transcribe base64-encoded audio.

        The caller's config keys override the defaults (WEBM/Opus at 48kHz,
        Indian English). Returns an empty transcript when nothing was recognized.
        """
        payload = {
            "config": {**DEFAULT_RECOGNITION_CONFIG, **(config or {})},
            "audio": {"content": audio_data},
        }
        data = post_json(
            self.session, f"{self.base_url}/speech:recognize", self.api_key, payload, self.timeout, "Speech"
        )

        results = data.get("results") or []
        alternatives = (results[0].get("alternatives") or []) if results else []
        if not alternatives:
            return Transcription()

        best = alternatives[0]
        return Transcription(
            transcript=best.get("transcript", ""),
            confidence=best.get("confidence") or 0.0,
        )
