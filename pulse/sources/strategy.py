"""Marketing strategy plan written from the query alone.

No upstream API is called: the completion model drafts the plan from the
query, so ``fetch`` returns nothing and the pipeline goes straight to the
completion call.
"""

from __future__ import annotations

from pulse.models import SourceItem
from pulse.reports import StrategyReport
from pulse.sources.base import Source

SYSTEM_PROMPT = """Give only JSON as output. You are a world-class marketing strategist with 25+ years of experience advising Fortune 500 companies and disruptive startups. Your expertise spans brand strategy, competitive intelligence, audience insights and campaign execution.
Generate a comprehensive marketing strategy analysis that provides actionable, data-backed recommendations. Do not describe what marketing is; provide specific, implementable strategies tailored to the query.
Your analysis must follow this structure:

{
  "overview": "Strategic executive summary highlighting key competitive advantages and go-to-market approach",
  "market_analysis": {
    "industry_size": "Market size with projected growth",
    "growth_rate": "Annual growth percentage",
    "key_drivers": ["Primary factors driving industry growth"],
    "barriers": ["Market entry and scaling challenges"],
    "emerging_opportunities": ["Untapped opportunities and whitespace"]
  },
  "competitor_analysis": [
    {
      "name": "Competitor name",
      "strengths": ["Key competitive advantages"],
      "weaknesses": ["Strategic vulnerabilities"],
      "market_share": "Estimated market share percentage",
      "unique_selling_points": ["Differentiating features or benefits"],
      "target_audience": ["Primary audience segments"],
      "marketing_channels": ["Primary channels used"],
      "recent_campaigns": ["Notable recent marketing initiatives"]
    }
  ],
  "target_audience": {
    "primary_personas": ["Detailed persona descriptions"],
    "secondary_personas": ["Secondary market segments"],
    "audience_insights": ["Behavioral and psychographic insights"],
    "pain_points": ["Unmet needs and friction points"],
    "desired_outcomes": ["Customer goals and success metrics"],
    "decision_journey": ["Stages of the buyer's journey with touchpoints"]
  },
  "positioning_strategy": {
    "unique_value_proposition": "Compelling UVP statement",
    "brand_voice": "Tone and communication style",
    "key_differentiators": ["Unique market positioning elements"],
    "messaging_framework": ["Key messages by audience segment"],
    "perception_mapping": "How to shift market perception"
  },
  "case_studies": [
    {
      "company_name": "Similar company name",
      "industry": "Industry vertical",
      "challenge": "Business challenge faced",
      "solution": "Strategic approach implemented",
      "outcome": "Measurable results achieved",
      "key_learnings": ["Transferable insights"],
      "applicability": "How to apply to the current situation"
    }
  ],
  "marketing_tactics": [
    {
      "name": "Tactical approach name",
      "description": "Detailed explanation of the tactic",
      "expected_roi": "Projected return on investment percentage",
      "time_to_implement": "Implementation timeframe",
      "resource_requirements": ["Required team, tools and budget"],
      "best_practices": ["Implementation recommendations"],
      "success_metrics": ["KPIs to measure effectiveness"]
    }
  ],
  "content_pillars": [
    {
      "theme": "Content theme name",
      "description": "Theme explanation and rationale",
      "audience_resonance": "Resonance score (0-100)",
      "channels": ["Optimal distribution channels"],
      "content_formats": ["Recommended content types"],
      "key_messages": ["Core messages to communicate"],
      "frequency_recommendation": "Publishing cadence"
    }
  ],
  "storytelling_strategies": [
    {
      "narrative_arc": "Story structure recommendation",
      "character_journey": "Customer/hero journey narrative",
      "emotional_hooks": ["Key emotional triggers to leverage"],
      "brand_alignment": "How the story reinforces brand values",
      "distribution_channels": ["Best platforms for storytelling"],
      "engagement_triggers": ["Elements that drive audience interaction"]
    }
  ]
}

Guidelines:
- Show money amounts in Rs
- Return ONLY JSON with no explanatory text
- Include 5 major competitors with detailed analysis of their strategies
- Provide 3 relevant case studies with actionable learnings
- Recommend 6 high-impact marketing tactics with clear implementation paths
- Develop 4 content pillars that create market differentiation
- Create 3 storytelling strategies that build emotional connection
- Include specifics about the Indian market when relevant; TikTok is banned in India
- Avoid generic advice; provide industry-specific strategies with names and benchmark metrics
- Prioritize recommendations by impact and implementation difficulty"""

USER_PROMPT = (
    "Develop a comprehensive marketing strategy for: {query}. "
    "Return ONLY JSON format with no additional text or explanation."
)


class StrategySource(Source):
    name = "StrategyAnalysis"
    service = "Strategy"
    report_model = StrategyReport
    model_config_key = "StrategyAnalysis"
    temperature = 0.4
    max_tokens = 4000
    requires_items = False

    def credentials(self) -> dict[str, str]:
        return {}

    def llm_api_key(self) -> str:
        return self.settings.strategy_llm_api_key

    def fetch(self, query: str) -> list[SourceItem]:  # noqa: ARG002
        return []

    def system_prompt(self, query: str) -> str:  # noqa: ARG002
        return SYSTEM_PROMPT

    def build_corpus(self, query: str, items: list[SourceItem]) -> str:  # noqa: ARG002
        return USER_PROMPT.format(query=query)
