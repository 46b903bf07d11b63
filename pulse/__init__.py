"""
market-pulse core package.

Modules
───────
models        — Pydantic data models (SourceItem, FetchResult, SavedSearch, ApiModel)
errors        — Exception taxonomy raised inside the pipeline
text          — Numeric coercion, whitespace cleanup, truncation, corpus assembly
relevance     — Stop-word-aware whole-word query relevance filter
http          — requests helpers with timeout / status translation
llm           — OpenAI-compatible chat-completion client (JSON mode)
reports       — Pydantic AnalysisReport schemas + result parser
pipeline      — Generic fetch → normalize → filter → prompt → parse pipeline
storage       — SQLite database handle shared by the stores
history       — Saved searches (create, list, get, delete)
model_config  — api_name → model_name lookup table
smart_query   — Per-component query rewriting
widget        — idle → loading → success | error lifecycle with stale-response guard
sources       — One module per upstream integration
"""
