"""Tests for the Gemini gateway and JSON extraction."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from truthlens.exceptions import (
    UpstreamAuthError,
    UpstreamEmptyResponseError,
    UpstreamError,
    UpstreamParseError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
)
from truthlens.schemas.analyze_schemas import StoryPrompt
from truthlens.services.fallback_service import synthesize_analysis
from truthlens.services.gemini_client import GeminiClient, extract_json
from truthlens.tests.conftest import SAMPLE_ANALYSIS, SAMPLE_STORY, FakeResponse


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_client(response=None, side_effect=None, api_key="test-key"):
    session = MagicMock()
    session.post.return_value = response
    session.post.side_effect = side_effect
    return GeminiClient(api_key=api_key, model="gemini-1.5-flash", base_url="https://gemini.test/models",
                        timeout=5, session=session), session


class TestExtractJson:
    """Tests for lenient JSON extraction."""

    def test_fenced_json(self):
        raw = 'Here you go:\n```json\n{"a": 1, "b": {"c": 2}}\n```\nHope it helps'
        assert extract_json(raw) == {"a": 1, "b": {"c": 2}}

    def test_no_object(self):
        with pytest.raises(UpstreamParseError, match="No JSON object"):
            extract_json("I cannot help with that.")

    def test_invalid_json(self):
        with pytest.raises(UpstreamParseError, match="Invalid JSON"):
            extract_json("{credibilityScore: 50}")

    def test_greedy_span_across_two_objects(self):
        """Test two separate objects make one invalid span rather than a partial parse."""
        with pytest.raises(UpstreamParseError):
            extract_json('{"a": 1} and also {"b": 2}')


class TestGeminiRequest:
    """Tests for the generateContent call and its error mapping."""

    def test_request_shape(self):
        client, session = make_client(FakeResponse(200, gemini_reply("hello")))
        assert client.request("prompt", {"temperature": 0.7}) == "hello"

        args, kwargs = session.post.call_args
        assert args[0] == "https://gemini.test/models/gemini-1.5-flash:generateContent"
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["timeout"] == 5
        assert kwargs["json"]["contents"] == [{"parts": [{"text": "prompt"}]}]
        assert kwargs["json"]["generationConfig"]["temperature"] == 0.7
        assert kwargs["json"]["generationConfig"]["topK"] == 40
        assert kwargs["json"]["generationConfig"]["maxOutputTokens"] == 2048

    @pytest.mark.parametrize("status,error_class,message", [
        (401, UpstreamAuthError, "Authentication failed"),
        (403, UpstreamAuthError, "API access forbidden"),
        (429, UpstreamRateLimitError, "Rate limit exceeded"),
        (500, UpstreamError, "Gemini API error: 500 - internal"),
    ])
    def test_http_errors(self, status, error_class, message):
        client, _ = make_client(FakeResponse(status, text="internal"))
        with pytest.raises(error_class, match=message) as excinfo:
            client.request("prompt")
        assert excinfo.value.upstream_status == status

    def test_error_payload_on_200(self):
        client, _ = make_client(FakeResponse(200, {"error": {"message": "quota"}}))
        with pytest.raises(UpstreamError, match="Gemini API returned error: quota"):
            client.request("prompt")

    @pytest.mark.parametrize("payload", [{}, {"candidates": []}, gemini_reply("   ")])
    def test_empty_response(self, payload):
        client, _ = make_client(FakeResponse(200, payload))
        with pytest.raises(UpstreamEmptyResponseError, match="No content received from Gemini API"):
            client.request("prompt")

    def test_timeout(self):
        client, _ = make_client(side_effect=requests.Timeout("read timed out"))
        with pytest.raises(UpstreamTimeoutError):
            client.request("prompt")

    def test_network_error(self):
        client, _ = make_client(side_effect=requests.ConnectionError("refused"))
        with pytest.raises(UpstreamError, match="Network error"):
            client.request("prompt")

    def test_missing_api_key(self):
        client, session = make_client(FakeResponse(200, gemini_reply("hi")), api_key="")
        with pytest.raises(UpstreamAuthError):
            client.request("prompt")
        session.post.assert_not_called()


class TestGeminiOperations:
    """Tests for analyze / story / report on top of request()."""

    def test_analyze_text(self):
        reply = "```json\n" + json.dumps(SAMPLE_ANALYSIS) + "\n```"
        client, session = make_client(FakeResponse(200, gemini_reply(reply)))

        result = client.analyze_text("Hot water cures viruses", "WhatsApp forward")
        assert result.credibility_score == 35
        assert result.attacker_profile.target_audience == "Elderly relatives"
        prompt = session.post.call_args.kwargs["json"]["contents"][0]["parts"][0]["text"]
        assert 'Content to analyze: "Hot water cures viruses"' in prompt
        assert "Context: WhatsApp forward" in prompt

    def test_analyze_normalizes_model_quirks(self):
        """Test fractional percentages and upper-case levels are accepted."""
        quirky = {**SAMPLE_ANALYSIS, "credibilityScore": 72.6, "riskLevel": "MEDIUM"}
        client, _ = make_client(FakeResponse(200, gemini_reply(json.dumps(quirky))))
        result = client.analyze_text("content")
        assert result.credibility_score == 73
        assert result.risk_level == "medium"

    def test_analyze_wrong_shape(self):
        client, _ = make_client(FakeResponse(200, gemini_reply('{"credibilityScore": 400}')))
        with pytest.raises(UpstreamParseError):
            client.analyze_text("content")

    def test_generate_story(self):
        client, session = make_client(FakeResponse(200, gemini_reply(json.dumps(SAMPLE_STORY))))
        story = client.generate_story(synthesize_analysis("Ok"), "Ok")
        assert story == StoryPrompt.model_validate(SAMPLE_STORY)
        assert session.post.call_args.kwargs["json"]["generationConfig"]["temperature"] == 0.7

    def test_generate_report_returns_raw_text(self):
        client, session = make_client(FakeResponse(200, gemini_reply("# Report\nAll good")))
        analysis = synthesize_analysis("Ok")
        story = StoryPrompt.model_validate(SAMPLE_STORY)
        assert client.generate_report(analysis, story) == "# Report\nAll good"
        assert session.post.call_args.kwargs["json"]["generationConfig"]["temperature"] == 0.4
