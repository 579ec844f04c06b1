import json
import logging
import re
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from truthlens.config import settings
from truthlens.exceptions import UpstreamEmptyResponseError, UpstreamError, UpstreamParseError
from truthlens.schemas.analyze_schemas import AnalysisResult, StoryPrompt
from truthlens.services.google_api import post_json

logger = logging.getLogger(__name__)

# Greedy on purpose: first "{" through the last "}" of the reply
_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


ANALYSIS_SCHEMA = """{
  "credibilityScore": number (0-100),
  "riskLevel": "low" | "medium" | "high" | "critical",
  "issues": [
    {
      "type": "factual_error" | "bias" | "misleading_context" | "false_claim" | "manipulated_media" | "conspiracy_theory" | "hate_speech" | "spam",
      "severity": "low" | "medium" | "high" | "critical",
      "description": "detailed explanation",
      "confidence": number (0-100)
    }
  ],
  "summary": "brief summary of findings",
  "recommendations": ["actionable recommendations"],
  "sources": [
    {"url": "fact-check or authoritative source", "credibility": number (0-100), "domain": "domain name"}
  ],
  "attackerProfile": {
    "intent": "what the author of the misinformation wanted to achieve",
    "motivation": "financial, political, ideological, chaos, etc.",
    "methodology": "how it was spread",
    "targetAudience": "who was targeted"
  }
}"""

STORY_SCHEMA = """{
  "scenario": "compelling narrative setup",
  "characters": ["protagonist", "antagonist", "victims", "fact-checkers"],
  "timeline": "how events unfolded chronologically",
  "motivations": "why the attacker did this",
  "consequences": "real-world impact shown",
  "prevention": "how viewers can spot and stop similar misinformation"
}"""


def extract_json(raw_text: str) -> Dict[str, Any]:
    """
    Pull the JSON object out of a free-text model reply.

    Takes everything from the first "{" to the last "}" so that prose or
    markdown fences around the object are tolerated.
    """
    match = _JSON_BLOCK.search(raw_text or "")
    if not match:
        raise UpstreamParseError("No JSON object found in model response", body=(raw_text or "")[:500])
    try:
        parsed = json.loads(match.group(0))
    except ValueError as e:
        raise UpstreamParseError(f"Invalid JSON in model response: {e}", body=match.group(0)[:500])
    if not isinstance(parsed, dict):
        raise UpstreamParseError("Model response JSON is not an object", body=match.group(0)[:500])
    return parsed


class GeminiClient:
    """
    Thin client for the Gemini generateContent REST endpoint.

    Never retries: callers decide whether to fall back.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = settings.google_cloud_api_key if api_key is None else api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.upstream_timeout_seconds
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    def _generation_config(self, overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        config = {
            "temperature": settings.gemini_temperature,
            "topK": settings.gemini_top_k,
            "topP": settings.gemini_top_p,
            "maxOutputTokens": settings.gemini_max_output_tokens,
        }
        if overrides:
            config.update({k: v for k, v in overrides.items() if v is not None})
        return config

    def request(self, prompt: str, generation_config: Optional[Dict[str, Any]] = None) -> str:
        """Send one prompt and return the text of the first candidate."""
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": self._generation_config(generation_config),
        }

        logger.debug(f"Requesting {self.endpoint}")
        data = post_json(self.session, self.endpoint, self.api_key, payload, self.timeout, "Gemini")

        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            message = error.get("message", "Unknown error") if isinstance(error, dict) else error
            raise UpstreamError(f"Gemini API returned error: {message}", body=json.dumps(error))

        try:
            content = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not content or not content.strip():
            raise UpstreamEmptyResponseError("No content received from Gemini API", body=json.dumps(data)[:500])
        return content

    def analyze_text(self, content: str, context: Optional[str] = None) -> AnalysisResult:
        prompt = (
            "You are TruthLens AI, a misinformation detection system for Indian content. "
            "Analyze the following content for misinformation, bias, and credibility issues.\n\n"
            f'Content to analyze: "{content}"\n'
            + (f"Context: {context}\n" if context else "")
            + "\nProvide the analysis in JSON format with the following structure:\n"
            f"{ANALYSIS_SCHEMA}\n\n"
            "Focus on Indian context and current affairs. Be thorough but concise. Only return valid JSON."
        )

        raw = self.request(prompt)
        data = extract_json(raw)
        try:
            return AnalysisResult.model_validate(data)
        except PydanticValidationError as e:
            raise UpstreamParseError(f"Model analysis does not match the expected shape: {e}", body=raw[:500])

    def generate_story(self, analysis: AnalysisResult, original_content: str) -> StoryPrompt:
        profile = analysis.attacker_profile.to_wire() if analysis.attacker_profile else None
        prompt = (
            "Based on this misinformation analysis, create a short story video prompt for educational purposes.\n\n"
            f'Original Content: "{original_content}"\n'
            f'Analysis Summary: "{analysis.summary}"\n'
            f"Attacker Profile: {json.dumps(profile)}\n"
            f"Risk Level: {analysis.risk_level}\n"
            f"Issues Found: {', '.join(issue.description for issue in analysis.issues)}\n\n"
            "The 2-3 minute video should show how the misinformation started and spread, "
            "the attacker's intentions and methods, who was targeted and why, "
            "the potential consequences, and how people can protect themselves.\n\n"
            f"Format as JSON:\n{STORY_SCHEMA}\n\n"
            "Make it engaging but educational, suitable for Indian audiences. Only return valid JSON."
        )

        raw = self.request(prompt, {"temperature": 0.7})
        data = extract_json(raw)
        try:
            return StoryPrompt.model_validate(data)
        except PydanticValidationError as e:
            raise UpstreamParseError(f"Model story prompt does not match the expected shape: {e}", body=raw[:500])

    def generate_report(self, analysis: AnalysisResult, story_prompt: StoryPrompt) -> str:
        prompt = (
            "Generate a comprehensive misinformation analysis report based on:\n\n"
            f"Analysis: {json.dumps(analysis.to_wire())}\n"
            f"Story Context: {json.dumps(story_prompt.to_wire())}\n\n"
            "Create a detailed Markdown report with:\n"
            "1. Executive Summary\n"
            "2. Threat Assessment\n"
            "3. Technical Analysis\n"
            "4. Social Impact Assessment\n"
            "5. Mitigation Strategies\n"
            "6. Educational Narrative Summary\n\n"
            "Make it professional but accessible, suitable for both technical and "
            "non-technical stakeholders in India."
        )
        return self.request(prompt, {"temperature": 0.4})
