"""Tests for wire models."""

import json

import pytest
from pydantic import ValidationError

from truthlens.schemas.analyze_schemas import AnalysisResult
from truthlens.schemas.media_schemas import VideoResult
from truthlens.services.fallback_service import synthesize_analysis
from truthlens.tests.conftest import SAMPLE_ANALYSIS


class TestAnalysisResult:
    def test_json_round_trip(self):
        """Test a serialized analysis parses back to an equal one."""
        analysis = AnalysisResult.model_validate(SAMPLE_ANALYSIS)
        assert AnalysisResult.model_validate(json.loads(json.dumps(analysis.to_wire()))) == analysis

    def test_camel_case_on_wire(self):
        wire = synthesize_analysis("Ok").to_wire()
        assert {"credibilityScore", "riskLevel", "attackerProfile"} <= set(wire)
        assert "targetAudience" in wire["attackerProfile"]

    @pytest.mark.parametrize("update", [
        {"credibilityScore": 101},
        {"riskLevel": "extreme"},
        {"issues": []},
    ])
    def test_invalid_analysis(self, update):
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate({**SAMPLE_ANALYSIS, **update})


class TestVideoResult:
    BASE = {
        "videoId": "video_1",
        "videoUrl": "https://example.com/videos/video_1.mp4",
        "thumbnailUrl": "https://example.com/thumbnails/video_1.jpg",
        "duration": 120,
        "size": 20_000_000,
    }

    def test_failed_requires_error(self):
        with pytest.raises(ValidationError):
            VideoResult.model_validate({**self.BASE, "status": "failed", "progress": 40})

    def test_generating_cannot_be_complete(self):
        with pytest.raises(ValidationError):
            VideoResult.model_validate({**self.BASE, "status": "generating", "progress": 100})

    def test_failed_with_error(self):
        result = VideoResult.model_validate({**self.BASE, "status": "failed", "progress": 40, "error": "render"})
        assert result.error == "render"
