"""
Python client for the TruthLens API.

Used by the Streamlit demo; every call carries `Authorization: Bearer <anon key>`.
The client never falls back locally: when the server synthesized a step the
response's `degraded` list says so.
"""

import base64
import logging
import math
from typing import Any, Dict, List, Optional

import requests

from truthlens.config import settings

logger = logging.getLogger(__name__)


ISSUE_TYPE_NAMES = {
    "factual_error": "Factual Error",
    "bias": "Bias Detected",
    "misleading_context": "Misleading Context",
    "false_claim": "False Claim",
    "manipulated_media": "Manipulated Media",
    "conspiracy_theory": "Conspiracy Theory",
    "hate_speech": "Hate Speech",
    "spam": "Spam Content",
}

RISK_LEVEL_COLORS = {
    "low": "green",
    "medium": "yellow",
    "high": "orange",
    "critical": "red",
}


class TruthLensClientError(Exception):
    """A non-2xx answer (or transport failure) from the TruthLens API."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class TruthLensClient:
    def __init__(
        self,
        base_url: str,
        anon_key: Optional[str] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.anon_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.anon_key:
            headers["Authorization"] = f"Bearer {self.anon_key}"
        return headers

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, json=payload, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"TruthLens request {method} {path} failed: {e}")
            raise TruthLensClientError(None, f"Request failed: {e}")

        if not response.ok:
            message = f"HTTP {response.status_code}"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
            raise TruthLensClientError(response.status_code, message)

        try:
            return response.json()
        except ValueError:
            raise TruthLensClientError(response.status_code, "Invalid JSON in response")

    # ---------- Analysis ----------

    def analyze_content(
        self, content: str, content_type: str = "text", context: Optional[str] = None
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"content": content, "contentType": content_type}
        if context:
            payload["context"] = context
        return self._request("POST", "/analyze", payload)

    def get_analysis(self, analysis_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/analysis/{analysis_id}")["data"]

    def get_recent_analyses(self) -> List[Dict[str, Any]]:
        """Most recent analyses first; an empty list when the server cannot be reached."""
        try:
            return self._request("GET", "/analyses").get("data") or []
        except TruthLensClientError as e:
            logger.warning(f"Could not fetch recent analyses: {e.message}")
            return []

    def analyze_batch(self, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        return self._request("POST", "/analyze-batch", {"items": items})

    # ---------- Translation / speech ----------

    def translate(self, text: str, target_language: str, source_language: Optional[str] = None) -> Dict[str, Any]:
        payload = {"text": text, "targetLanguage": target_language}
        if source_language:
            payload["sourceLanguage"] = source_language
        return self._request("POST", "/translate", payload)

    def detect_language(self, text: str) -> Dict[str, Any]:
        return self._request("POST", "/detect-language", {"text": text})

    def get_languages(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/languages")["data"]

    def transcribe_audio(self, audio_bytes: bytes, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a raw recording (base64-encoded on the wire) for speech recognition."""
        payload: Dict[str, Any] = {"audioData": base64.b64encode(audio_bytes).decode("ascii")}
        if config:
            payload["config"] = config
        return self._request("POST", "/speech-to-text", payload)

    # ---------- Video ----------

    def generate_video(self, story_prompt: Dict[str, Any], options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"storyPrompt": story_prompt}
        if options:
            payload["options"] = options
        return self._request("POST", "/generate-video", payload)["videoResult"]

    def get_video(self, video_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/video/{video_id}")["data"]

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")


# ---------- Display helpers ----------


def risk_level_color(risk_level: str) -> str:
    return RISK_LEVEL_COLORS.get((risk_level or "").lower(), "gray")


def credibility_color(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    if score >= 40:
        return "orange"
    return "red"


def credibility_label(score: int) -> str:
    if score >= 80:
        return "High credibility"
    if score >= 60:
        return "Moderate credibility"
    if score >= 40:
        return "Low credibility"
    return "Very low credibility"


def format_confidence(confidence: float) -> str:
    # half-up, so 72.5 shows as 73%
    return f"{math.floor(confidence + 0.5)}%"


def issue_type_display_name(issue_type: str) -> str:
    return ISSUE_TYPE_NAMES.get(issue_type, issue_type.replace("_", " ").title())
