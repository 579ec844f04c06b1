from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Annotated, Any, Dict, List, Literal, Optional


RiskLevel = Literal["low", "medium", "high", "critical"]
ContentType = Literal["text", "image", "video", "audio"]

CONTENT_TYPES = {"text", "image", "video", "audio"}


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _round_number(value: Any) -> Any:
    # Models sometimes answer 72.5 where an integer percentage is expected
    if isinstance(value, float):
        return int(round(value))
    return value


def _lower(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


Percent = Annotated[int, BeforeValidator(_round_number), Field(ge=0, le=100)]
Level = Annotated[RiskLevel, BeforeValidator(_lower)]


class Issue(CamelModel):
    type: str
    severity: Level
    description: str
    confidence: Percent


class Source(CamelModel):
    url: str
    credibility: Percent
    domain: str


class AttackerProfile(CamelModel):
    intent: str
    motivation: str
    methodology: str
    target_audience: str


class AnalysisResult(CamelModel):
    credibility_score: Percent
    risk_level: Level
    issues: List[Issue] = Field(min_length=1)  # detection order, never empty
    summary: str
    recommendations: List[str] = Field(default_factory=list)
    sources: List[Source] = Field(default_factory=list)
    attacker_profile: Optional[AttackerProfile] = None


class StoryPrompt(CamelModel):
    """Narrative scaffold for an educational video about the content."""
    scenario: str
    characters: List[str]
    timeline: str
    motivations: str
    consequences: str
    prevention: str


class AnalyzeRequest(CamelModel):
    # Required fields are checked by the pipeline so that a missing value
    # answers 400 with the usual error envelope.
    content: Optional[str] = None
    content_type: Optional[str] = None
    context: Optional[str] = None


class AnalyzeResponse(CamelModel):
    success: bool = True
    analysis_id: str
    analysis: AnalysisResult
    story_prompt: StoryPrompt
    detailed_report: str
    degraded: List[str] = Field(default_factory=list)  # steps served by fallback


class AnalysisRecord(CamelModel):
    """Persisted composite of one /analyze run."""
    id: str
    analysis: AnalysisResult
    story_prompt: StoryPrompt
    detailed_report: str
    original_content: str
    content_type: ContentType
    context: Optional[str] = None
    timestamp: str  # ISO-8601, UTC
    degraded: List[str] = Field(default_factory=list)


class BatchRequest(CamelModel):
    items: Optional[List[Any]] = None  # items validated one by one


class BatchItemResult(CamelModel):
    analysis_id: Optional[str] = None
    analysis: Optional[AnalysisResult] = None
    story_prompt: Optional[StoryPrompt] = None
    original_content: Optional[str] = None
    error: Optional[str] = None


class BatchResponse(CamelModel):
    success: bool = True
    results: List[BatchItemResult]
