from typing import Any, Dict, List, Optional

import requests

from truthlens.config import settings
from truthlens.services.google_api import post_json


DEFAULT_FEATURES = [
    {"type": "TEXT_DETECTION"},
    {"type": "SAFE_SEARCH_DETECTION"},
    {"type": "LABEL_DETECTION"},
    {"type": "FACE_DETECTION"},
]


class VisionService:
    """Google Cloud Vision images:annotate over REST (OCR, safe search, labels, faces)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = settings.google_cloud_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.vision_base_url).rstrip("/")
        self.timeout = timeout or settings.upstream_timeout_seconds
        self.session = session or requests.Session()

    def annotate(self, image_data: str, features: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """Annotate one base64-encoded image; returns the first annotation response or {}."""
        payload = {
            "requests": [{
                "image": {"content": image_data},
                "features": features or DEFAULT_FEATURES,
            }]
        }
        data = post_json(
            self.session, f"{self.base_url}/images:annotate", self.api_key, payload, self.timeout, "Vision"
        )
        responses = data.get("responses") or [{}]
        return responses[0] or {}
