"""
Heuristic stand-ins used whenever the model cannot be reached or answers
with something unusable. Pure functions: no I/O, no randomness.
"""

import re
from typing import List

from truthlens.schemas.analyze_schemas import (
    AnalysisResult,
    AttackerProfile,
    Issue,
    Source,
    StoryPrompt,
)

EMOTIONAL_WORDS = re.compile(r"urgent|shocking|breaking|must|share|important|warning", re.IGNORECASE)
SHOUTING = re.compile(r"[A-Z]{5,}")

BASE_SCORE = 75
MIN_SCORE = 30
MAX_SCORE = 90
SHORT_CONTENT_LENGTH = 50

FALLBACK_RECOMMENDATIONS = [
    "Cross-check information with multiple reliable sources",
    "Verify through official fact-checking websites",
    "Look for corroborating evidence from authoritative sources",
    "Check the original source and publication date",
]

FALLBACK_SOURCES = [
    {"url": "https://factchecker.in", "credibility": 85, "domain": "factchecker.in"},
    {"url": "https://factcheck.org", "credibility": 90, "domain": "factcheck.org"},
]


def _risk_from_score(score: int) -> str:
    # Three buckets only; "critical" is left to the model
    if score < 40:
        return "high"
    elif score < 60:
        return "medium"
    return "low"


def synthesize_analysis(content: str) -> AnalysisResult:
    """Derive a plausible analysis from surface features of the text."""
    content = content or ""
    score = BASE_SCORE
    issues: List[Issue] = []

    if EMOTIONAL_WORDS.search(content):
        score -= 15
        issues.append(Issue(
            type="emotional_language",
            severity="medium",
            description="Content uses emotionally charged language that may indicate bias",
            confidence=70,
        ))

    if SHOUTING.search(content):
        score -= 10
        issues.append(Issue(
            type="formatting_concerns",
            severity="low",
            description="Excessive use of capital letters detected",
            confidence=60,
        ))

    if len(content) < SHORT_CONTENT_LENGTH:
        score -= 5
        issues.append(Issue(
            type="insufficient_context",
            severity="low",
            description="Content is very brief, lacks context for proper verification",
            confidence=80,
        ))

    if not issues:
        issues.append(Issue(
            type="analysis_unavailable",
            severity="low",
            description="Full AI analysis temporarily unavailable, basic pattern analysis applied",
            confidence=50,
        ))

    score = max(MIN_SCORE, min(MAX_SCORE, score))
    plural = "s" if len(issues) != 1 else ""

    return AnalysisResult(
        credibility_score=score,
        risk_level=_risk_from_score(score),
        issues=issues,
        summary=(
            "Content analysis completed with pattern recognition. "
            f"{len(issues)} potential issue{plural} identified. Manual verification recommended."
        ),
        recommendations=list(FALLBACK_RECOMMENDATIONS),
        sources=[Source(**source) for source in FALLBACK_SOURCES],
        attacker_profile=AttackerProfile(
            intent="Requires investigation - pattern analysis suggests potential information spreading",
            motivation="Unknown - could be engagement, misinformation, or legitimate sharing",
            methodology="Social media or messaging platform distribution",
            target_audience="General public or specific communities",
        ),
    )


def fallback_story(analysis: AnalysisResult) -> StoryPrompt:
    motivation = (
        analysis.attacker_profile.motivation
        if analysis.attacker_profile and analysis.attacker_profile.motivation
        else "Engagement or attention-seeking"
    )
    return StoryPrompt(
        scenario=(
            "A piece of content spreads rapidly across WhatsApp groups and social media, "
            "causing confusion before fact-checkers can respond."
        ),
        characters=["Concerned citizen", "Content creator", "Community members", "Fact-checkers"],
        timeline="Content spreads within hours through social networks before verification efforts can catch up.",
        motivations=motivation,
        consequences="Public confusion, resource misallocation, and potential harm to community trust.",
        prevention=(
            "Always verify through official sources, check multiple reliable websites, "
            "and think before sharing."
        ),
    )


def fallback_report(analysis: AnalysisResult, story_prompt: StoryPrompt) -> str:
    """Markdown report assembled from the analysis and story fields."""
    risk = analysis.risk_level.upper()
    target = (
        analysis.attacker_profile.target_audience
        if analysis.attacker_profile
        else "General public"
    )
    findings = "\n".join(
        f"- **{issue.type}** ({issue.severity} severity, {issue.confidence}% confidence): {issue.description}"
        for issue in analysis.issues
    )
    mitigations = "\n".join(f"- {rec}" for rec in analysis.recommendations) or "- Verify before sharing"

    return (
        "# TruthLens Misinformation Analysis Report\n\n"
        "## Executive Summary\n"
        f"Content analysis completed with credibility score: {analysis.credibility_score}/100\n"
        f"Risk Level: {risk}\n\n"
        "## Threat Assessment\n"
        f"- **Risk Level:** {risk}\n"
        f"- **Issues Identified:** {len(analysis.issues)}\n"
        f"- **Primary Concerns:** {', '.join(issue.type for issue in analysis.issues)}\n\n"
        "## Technical Analysis\n"
        f"{findings}\n\n"
        "## Social Impact Assessment\n"
        f"- **Target Audience:** {target}\n"
        f"- **Potential Spread:** {story_prompt.timeline}\n"
        f"- **Consequences:** {story_prompt.consequences}\n\n"
        "## Mitigation Strategies\n"
        f"{mitigations}\n\n"
        "## Educational Narrative\n"
        f"**Scenario:** {story_prompt.scenario}\n"
        f"**Prevention Methods:** {story_prompt.prevention}\n\n"
        "## Conclusion\n"
        f"{analysis.summary}\n\n"
        "---\n"
        "*Generated by TruthLens AI - Misinformation Detection System*\n"
    )
