"""AnalysisReport schemas and the result parser.

Each source asks the completion endpoint for one of the report shapes below.
``parse_report`` turns the completion text into that model:

* the text must be a JSON object, otherwise it is a ``ReportParseError``;
* every required top-level section must be present with the right container
  type, so a report missing its pain-point list is rejected;
* inside sections the models are lenient: numbers may arrive as strings
  (``"7"``, ``"8/10"``), unparseable numbers become ``0``, missing fields take
  defaults and unknown keys are kept.

Requested array sizes ("exactly 6 pain points") stay a soft contract and are
not checked.
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from pulse.errors import ReportParseError
from pulse.text import to_float

_NUMBER = re.compile(r"[-+]?\d*\.?\d+")
_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*)```")


def _lenient_number(value: Any) -> float:
    if isinstance(value, str):
        match = _NUMBER.search(value)
        return float(match.group(0)) if match else 0.0
    return to_float(value)


def _lenient_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _lenient_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        return [value]
    return value


Number = Annotated[float, BeforeValidator(_lenient_number)]
Text = Annotated[str, BeforeValidator(_lenient_text)]
TextList = Annotated[list[Text], BeforeValidator(_lenient_list)]


class _Section(BaseModel):
    """Lenient nested object: every field defaults, unknown keys kept."""

    model_config = ConfigDict(extra="allow")


class AnalysisReport(BaseModel):
    """Base class of every top-level report."""

    model_config = ConfigDict(extra="allow")

    overview: Text


# ── Shared sections ────────────────────────────────────────────────────────────


class Sentiment(_Section):
    score: Number = 0.0
    label: Text = "neutral"
    confidence: Number = 0.0


class PainPoint(_Section):
    title: Text = ""
    description: Text = ""
    frequency: Number = 0.0
    impact: Number = 0.0
    sentiment: Text = ""
    possible_solutions: TextList = Field(default_factory=list)


class UserExperience(_Section):
    scenario: Text = ""
    impact: Text = ""
    frequency_pattern: Text = ""
    sentiment: Text = "neutral"


class EmotionalTrigger(_Section):
    trigger: Text = ""
    context: Text = ""
    intensity: Number = 0.0
    response_pattern: Text = ""
    activation_phrases: TextList = Field(default_factory=list)


# ── Reddit: marketing insight ──────────────────────────────────────────────────


class RecurringPainPoint(_Section):
    issue: Text = ""
    frequency: Number = 0.0
    impact_score: Number = 0.0
    verbatim_quotes: TextList = Field(default_factory=list)
    suggested_solutions: TextList = Field(default_factory=list)


class NicheCommunity(_Section):
    segment: Text = ""
    demographic_indicators: TextList = Field(default_factory=list)
    discussion_themes: TextList = Field(default_factory=list)
    engagement_level: Number = 0.0
    influence_score: Number = 0.0
    key_influencers: TextList = Field(default_factory=list)


class BrandPerception(_Section):
    positive_attributes: TextList = Field(default_factory=list)
    negative_attributes: TextList = Field(default_factory=list)
    neutral_observations: TextList = Field(default_factory=list)


class SentimentBreakdown(_Section):
    overall_sentiment: Number = 0.0
    emotional_triggers: list[EmotionalTrigger] = Field(default_factory=list)
    brand_perception: BrandPerception = Field(default_factory=BrandPerception)


class PsychographicInsights(_Section):
    motivation_factors: TextList = Field(default_factory=list)
    decision_drivers: TextList = Field(default_factory=list)
    adoption_barriers: TextList = Field(default_factory=list)


class CompetitiveIntelligence(_Section):
    market_positioning: Text = ""
    share_of_voice: Number = 0.0
    competitive_advantages: TextList = Field(default_factory=list)
    threat_assessment: Text = ""


class MarketingInsightReport(AnalysisReport):
    recurring_pain_points: list[RecurringPainPoint]
    niche_communities: list[NicheCommunity]
    sentiment_analysis: SentimentBreakdown
    psychographic_insights: PsychographicInsights = Field(default_factory=PsychographicInsights)
    competitive_intelligence: CompetitiveIntelligence = Field(
        default_factory=CompetitiveIntelligence
    )


# ── Quora: forum answers ───────────────────────────────────────────────────────


class ExpertOpinion(_Section):
    author: Text = ""
    stance: Text = ""
    summary: Text = ""
    credibility: Number = 0.0


class ForumReport(AnalysisReport):
    sentiment: Sentiment
    pain_points: list[PainPoint]
    expert_opinions: list[ExpertOpinion] = Field(default_factory=list)
    recommendations: TextList = Field(default_factory=list)


# ── Play Store: app reviews ────────────────────────────────────────────────────


class SentimentDistribution(_Section):
    positive: Number = 0.0
    neutral: Number = 0.0
    negative: Number = 0.0


class SentimentTrend(_Section):
    topic: Text = ""
    sentiment: Text = "neutral"
    intensity: Number = 0.0


class ReviewSentiment(_Section):
    overall: Text = "neutral"
    score: Number = 0.0
    distribution: SentimentDistribution = Field(default_factory=SentimentDistribution)
    trends: list[SentimentTrend] = Field(default_factory=list)


class ReviewReport(AnalysisReport):
    sentiment_analysis: ReviewSentiment
    pain_points: list[PainPoint]
    user_experiences: list[UserExperience] = Field(default_factory=list)
    market_implications: Text = ""


# ── YouTube: video comments ────────────────────────────────────────────────────


class CommentReport(AnalysisReport):
    pain_points: list[PainPoint]
    user_experiences: list[UserExperience]
    emotional_triggers: list[EmotionalTrigger]
    market_implications: Text = ""


# ── X: social trends ───────────────────────────────────────────────────────────


class TrendTrigger(_Section):
    name: Text = ""
    description: Text = ""
    impact_score: Number = 0.0
    frequency: Number = 0.0
    examples: TextList = Field(default_factory=list)


class CurrentTrend(_Section):
    name: Text = ""
    description: Text = ""
    popularity_score: Number = 0.0
    growth_rate: Number = 0.0
    examples: TextList = Field(default_factory=list)


class UpcomingTrend(_Section):
    name: Text = ""
    description: Text = ""
    prediction_confidence: Number = 0.0
    potential_impact: Number = 0.0
    early_indicators: TextList = Field(default_factory=list)


class HashtagStat(_Section):
    tag: Text = ""
    count: Number = 0.0
    relevance: Number = 0.0


class TrendInsights(_Section):
    comparisons: TextList = Field(default_factory=list)
    actionable_insights: TextList = Field(default_factory=list)
    demographic_patterns: TextList = Field(default_factory=list)


class TrendReport(AnalysisReport):
    sentiment: Sentiment
    triggers: list[TrendTrigger]
    current_trends: list[CurrentTrend]
    upcoming_trends: list[UpcomingTrend]
    relevant_hashtags: list[HashtagStat] = Field(default_factory=list)
    trend_insights: TrendInsights = Field(default_factory=TrendInsights)


# ── News: market summary ───────────────────────────────────────────────────────


class MarketTrend(_Section):
    title: Text = ""
    description: Text = ""
    percentage: Number = 0.0


class Competitor(_Section):
    name: Text = ""
    strength: Text = ""
    score: Number = 0.0


class NewsReport(AnalysisReport):
    trends: list[MarketTrend]
    competitors: list[Competitor]
    opportunities: TextList = Field(default_factory=list)


# ── Meta ads: competitor advertising ───────────────────────────────────────────


class MessagingStrategy(_Section):
    strategy: Text = ""
    description: Text = ""
    prevalence: Number = 0.0
    effectiveness: Number = 0.0
    examples: TextList = Field(default_factory=list)


class VisualTactic(_Section):
    tactic: Text = ""
    implementation: Text = ""
    impact: Text = ""
    frequency_of_use: Number = 0.0


class AudienceSegment(_Section):
    segment: Text = ""
    approach: Text = ""
    intensity: Number = 0.0
    engagement_potential: Text = ""


class CallToAction(_Section):
    cta: Text = ""
    context: Text = ""
    strength: Number = 0.0
    conversion_potential: Text = ""


class AdReport(AnalysisReport):
    messaging_strategies: list[MessagingStrategy]
    visual_tactics: list[VisualTactic] = Field(default_factory=list)
    audience_targeting: list[AudienceSegment]
    competitive_advantage: Text = ""
    call_to_action_effectiveness: list[CallToAction] = Field(default_factory=list)
    recommended_counter_strategies: Text = ""


# ── Strategy: marketing plan ───────────────────────────────────────────────────


class MarketAnalysis(_Section):
    industry_size: Text = ""
    growth_rate: Number = 0.0
    key_drivers: TextList = Field(default_factory=list)
    barriers: TextList = Field(default_factory=list)
    emerging_opportunities: TextList = Field(default_factory=list)


class CompetitorProfile(_Section):
    name: Text = ""
    strengths: TextList = Field(default_factory=list)
    weaknesses: TextList = Field(default_factory=list)
    market_share: Number = 0.0
    unique_selling_points: TextList = Field(default_factory=list)
    target_audience: TextList = Field(default_factory=list)
    marketing_channels: TextList = Field(default_factory=list)
    recent_campaigns: TextList = Field(default_factory=list)


class TargetAudience(_Section):
    primary_personas: TextList = Field(default_factory=list)
    secondary_personas: TextList = Field(default_factory=list)
    audience_insights: TextList = Field(default_factory=list)
    pain_points: TextList = Field(default_factory=list)
    desired_outcomes: TextList = Field(default_factory=list)
    decision_journey: TextList = Field(default_factory=list)


class Positioning(_Section):
    unique_value_proposition: Text = ""
    brand_voice: Text = ""
    key_differentiators: TextList = Field(default_factory=list)
    messaging_framework: TextList = Field(default_factory=list)
    perception_mapping: Text = ""


class CaseStudy(_Section):
    company_name: Text = ""
    industry: Text = ""
    challenge: Text = ""
    solution: Text = ""
    outcome: Text = ""
    key_learnings: TextList = Field(default_factory=list)
    applicability: Text = ""


class MarketingTactic(_Section):
    name: Text = ""
    description: Text = ""
    expected_roi: Number = 0.0
    time_to_implement: Text = ""
    resource_requirements: TextList = Field(default_factory=list)
    best_practices: TextList = Field(default_factory=list)
    success_metrics: TextList = Field(default_factory=list)


class ContentPillar(_Section):
    theme: Text = ""
    description: Text = ""
    audience_resonance: Number = 0.0
    channels: TextList = Field(default_factory=list)
    content_formats: TextList = Field(default_factory=list)
    key_messages: TextList = Field(default_factory=list)
    frequency_recommendation: Text = ""


class StorytellingStrategy(_Section):
    narrative_arc: Text = ""
    character_journey: Text = ""
    emotional_hooks: TextList = Field(default_factory=list)
    brand_alignment: Text = ""
    distribution_channels: TextList = Field(default_factory=list)
    engagement_triggers: TextList = Field(default_factory=list)


class StrategyReport(AnalysisReport):
    market_analysis: MarketAnalysis
    competitor_analysis: list[CompetitorProfile]
    target_audience: TargetAudience = Field(default_factory=TargetAudience)
    positioning_strategy: Positioning = Field(default_factory=Positioning)
    case_studies: list[CaseStudy] = Field(default_factory=list)
    marketing_tactics: list[MarketingTactic]
    content_pillars: list[ContentPillar] = Field(default_factory=list)
    storytelling_strategies: list[StorytellingStrategy] = Field(default_factory=list)


# ── Parser ─────────────────────────────────────────────────────────────────────

R = TypeVar("R", bound=BaseModel)


def strip_code_fence(text: str) -> str:
    """Return the body of the Markdown code fence around *text*.

    Text that already starts as JSON is returned unchanged, so a fenced
    snippet quoted inside a string value is never mistaken for the wrapper.
    Otherwise everything between the first and the last fence is kept.
    """
    if text.lstrip().startswith(("{", "[")):
        return text
    match = _CODE_FENCE.search(text)
    return match.group(1).strip() if match else text


def parse_report(text: str, model: type[R]) -> R:
    """Parse completion *text* into *model*.

    Raises:
        ReportParseError: Malformed JSON, a non-object payload, or a payload
            missing a required section.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportParseError(f"invalid JSON ({exc.msg})", raw=text) from exc

    if not isinstance(data, dict):
        raise ReportParseError(
            f"expected a JSON object, got {type(data).__name__}", raw=text
        )

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise ReportParseError(
            f"{exc.error_count()} schema error(s), first at {where}: {first['msg']}",
            raw=text,
        ) from exc
