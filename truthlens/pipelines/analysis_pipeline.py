from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from truthlens.config import settings
from truthlens.exceptions import NotFoundError, ValidationError
from truthlens.schemas.analyze_schemas import (
    CONTENT_TYPES,
    AnalysisRecord,
    AnalysisResult,
    AnalyzeRequest,
    AnalyzeResponse,
    BatchItemResult,
    BatchResponse,
    StoryPrompt,
)
from truthlens.services.fallback_service import fallback_report, fallback_story, synthesize_analysis
from truthlens.services.gemini_client import GeminiClient
from truthlens.services.kv_store import KeyValueStore
from truthlens.utils.ids import new_analysis_id, utc_now_iso
from truthlens.utils.logging_config import StructuredLogger, log_execution_time, metrics

logger = StructuredLogger(__name__)

ANALYSIS_PREFIX = "analysis_"


def validate_request(content: Any, content_type: Any) -> Tuple[str, str]:
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Content is required")
    if content_type not in CONTENT_TYPES:
        raise ValidationError(
            "Invalid content type",
            details=f"contentType must be one of {sorted(CONTENT_TYPES)}",
        )
    return content, content_type


def gateway_context(content_type: str, context: Optional[str]) -> Optional[str]:
    """Media is analysed through its textual description, flagged as such."""
    if content_type == "text":
        return context
    media_context = (
        f"This is {content_type} content that needs verification "
        "for potential manipulation or deepfakes."
    )
    return f"{media_context} {context}" if context else media_context


def _parse_timestamp(record: Dict[str, Any]) -> datetime:
    raw = record.get("timestamp")
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.min.replace(tzinfo=timezone.utc)


class AnalysisPipeline:
    """
    analyze -> story prompt -> detailed report -> persist.

    Each model call has its own fallback, so a request with valid input is
    always answered; `degraded` records which steps were synthesized.
    """

    def __init__(self, gateway: GeminiClient, store: KeyValueStore, list_limit: Optional[int] = None):
        self.gateway = gateway
        self.store = store
        self.list_limit = list_limit or settings.recent_analyses_limit

    # ============== STEPS ==============

    def _analyze_step(
        self, content: str, content_type: str, context: Optional[str], degraded: List[str]
    ) -> AnalysisResult:
        try:
            return self.gateway.analyze_text(content, gateway_context(content_type, context))
        except Exception as e:
            logger.warning(
                "Model analysis failed, using heuristic fallback",
                error=str(e),
                error_type=type(e).__name__,
            )
            metrics.increment("analysis.fallback.analysis")
            degraded.append("analysis")
            return synthesize_analysis(content)

    def _story_step(self, analysis: AnalysisResult, content: str, degraded: List[str]) -> StoryPrompt:
        try:
            return self.gateway.generate_story(analysis, content)
        except Exception as e:
            logger.warning("Story generation failed, using template", error=str(e), error_type=type(e).__name__)
            metrics.increment("analysis.fallback.story_prompt")
            degraded.append("storyPrompt")
            return fallback_story(analysis)

    def _report_step(self, analysis: AnalysisResult, story_prompt: StoryPrompt, degraded: List[str]) -> str:
        try:
            return self.gateway.generate_report(analysis, story_prompt)
        except Exception as e:
            logger.warning("Report generation failed, using template", error=str(e), error_type=type(e).__name__)
            metrics.increment("analysis.fallback.detailed_report")
            degraded.append("detailedReport")
            return fallback_report(analysis, story_prompt)

    def _persist(
        self,
        analysis: AnalysisResult,
        story_prompt: StoryPrompt,
        detailed_report: str,
        content: str,
        content_type: str,
        context: Optional[str],
        degraded: List[str],
    ) -> AnalysisRecord:
        record = AnalysisRecord(
            id=new_analysis_id(),
            analysis=analysis,
            story_prompt=story_prompt,
            detailed_report=detailed_report,
            original_content=content,
            content_type=content_type,
            context=context,
            timestamp=utc_now_iso(),
            degraded=degraded,
        )
        self.store.put(record.id, record.to_wire())
        metrics.increment(f"analysis.risk.{analysis.risk_level}")
        return record

    # ============== OPERATIONS ==============

    @log_execution_time("truthlens.pipeline")
    def analyze(self, content: Any, content_type: Any, context: Optional[str] = None) -> AnalyzeResponse:
        content, content_type = validate_request(content, content_type)
        metrics.increment("analysis.requests")
        metrics.increment(f"analysis.content_type.{content_type}")
        logger.info("Starting analysis", content_type=content_type, content_length=len(content))

        degraded: List[str] = []
        analysis = self._analyze_step(content, content_type, context, degraded)
        story_prompt = self._story_step(analysis, content, degraded)
        detailed_report = self._report_step(analysis, story_prompt, degraded)

        record = self._persist(analysis, story_prompt, detailed_report, content, content_type, context, degraded)
        logger.info("Analysis completed", analysis_id=record.id, degraded=degraded)

        return AnalyzeResponse(
            analysis_id=record.id,
            analysis=analysis,
            story_prompt=story_prompt,
            detailed_report=detailed_report,
            degraded=degraded,
        )

    def _analyze_batch_item(self, item: Any) -> BatchItemResult:
        if not isinstance(item, dict):
            raise ValidationError("Each item must be an object")
        try:
            request = AnalyzeRequest.model_validate(item)
        except PydanticValidationError as e:
            raise ValidationError("Invalid item", details=str(e))
        content, content_type = validate_request(request.content, request.content_type)
        metrics.increment("analysis.requests")
        metrics.increment(f"analysis.content_type.{content_type}")

        degraded: List[str] = []
        analysis = self._analyze_step(content, content_type, request.context, degraded)
        story_prompt = self._story_step(analysis, content, degraded)
        # Batch runs skip the model report; the record still gets one
        degraded.append("detailedReport")
        report = fallback_report(analysis, story_prompt)

        record = self._persist(analysis, story_prompt, report, content, content_type, request.context, degraded)
        return BatchItemResult(
            analysis_id=record.id,
            analysis=analysis,
            story_prompt=story_prompt,
            original_content=content,
        )

    @log_execution_time("truthlens.pipeline")
    def analyze_batch(self, items: Any) -> BatchResponse:
        if not isinstance(items, list) or not items:
            raise ValidationError("Items array is required")

        metrics.increment("analysis.batch.requests")
        results: List[BatchItemResult] = []
        for index, item in enumerate(items):
            try:
                results.append(self._analyze_batch_item(item))
            except Exception as e:
                logger.warning("Batch item failed", index=index, error=str(e), error_type=type(e).__name__)
                metrics.increment("analysis.batch.item_errors")
                original = item.get("content") if isinstance(item, dict) else None
                results.append(BatchItemResult(
                    error=str(e),
                    original_content=original if isinstance(original, str) else None,
                ))
        return BatchResponse(results=results)

    def get_analysis(self, analysis_id: str) -> Dict[str, Any]:
        record = self.store.get(analysis_id) if analysis_id.startswith(ANALYSIS_PREFIX) else None
        if not record:
            raise NotFoundError("Analysis not found")
        return record

    def list_analyses(self) -> List[Dict[str, Any]]:
        records = self.store.get_by_prefix(ANALYSIS_PREFIX)
        records.sort(key=_parse_timestamp, reverse=True)
        return records[: self.list_limit]
