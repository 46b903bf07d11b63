"""
Flask web server for Market Pulse.

Routes
──────
GET    /                                  Dashboard UI
GET    /api/sources                       Component names and credential status
GET    /api/report/<component>?query=&session=
                                          Run a report through the session's widget
GET    /api/widgets/<component>?session=  Current widget state
POST   /api/widgets/<component>/retry?session=
                                          Re-run the last query after an error
POST   /api/smart-query                   {query} → per-component queries
GET    /api/history?user_id=              Saved searches for a user
POST   /api/history                       {user_id, query, active_components}
DELETE /api/history/<id>?user_id=         Delete a saved search
GET    /api/models                        Model configuration rows
PUT    /api/models/<api_name>             {model_name}
DELETE /api/models/<api_name>
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, render_template, request

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from pulse.history import HistoryStore
from pulse.http import new_session
from pulse.llm import CompletionClient
from pulse.model_config import ModelConfigStore
from pulse.pipeline import Pipeline
from pulse.smart_query import smart_query
from pulse.sources import Source, build_sources
from pulse.storage import Database
from pulse.widget import WidgetBoard

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


def create_app(
    settings: Optional[Settings] = None,
    *,
    sources: Optional[dict[str, Source]] = None,
    pipeline: Optional[Pipeline] = None,
    llm: Optional[CompletionClient] = None,
) -> Flask:
    """Build the Flask app and wire its services.

    Args:
        settings: Defaults to ``Settings()`` read from the environment.
        sources: Component name → source; defaults to every registered source.
        pipeline: Defaults to a ``Pipeline`` backed by the model config table.
        llm: Client for smart queries and model-list checks; built from
            ``GROQ_API_KEY`` when omitted and a key is configured.
    """
    settings = settings or Settings()
    settings.validate()

    db = Database(settings.db_path)
    db.init_schema()

    if llm is None and settings.llm_api_key:
        llm = CompletionClient(
            settings.llm_api_key, settings.llm_base_url, settings.request_timeout
        )
    model_config = ModelConfigStore(db, llm)
    history = HistoryStore(db)
    if sources is None:
        sources = build_sources(settings, new_session())
    if pipeline is None:
        pipeline = Pipeline(settings, model_config)
    board = WidgetBoard(settings.max_widgets)

    app = Flask(__name__)

    def _source_or_404(component: str):
        source = sources.get(component)
        if source is None:
            return None, (jsonify({"error": f"Unknown component: {component}"}), 404)
        return source, None

    # ── UI ─────────────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        return render_template("index.html", components=list(sources))

    # ── Reports ────────────────────────────────────────────────────────────

    @app.route("/api/sources")
    def list_sources():
        return jsonify(
            [{"name": name, "configured": source.is_configured()}
             for name, source in sources.items()]
        )

    @app.route("/api/report/<component>")
    def report(component: str):
        """Run *component* for ``query`` and return the widget snapshot."""
        source, error = _source_or_404(component)
        if error:
            return error
        query = request.args.get("query", "").strip()
        if not query:
            return jsonify({"error": "query param is required"}), 400

        widget = board.get(request.args.get("session", DEFAULT_SESSION), component)
        widget.run(query, lambda q: pipeline.run(source, q))
        return jsonify(widget.snapshot())

    @app.route("/api/widgets/<component>")
    def widget_state(component: str):
        _, error = _source_or_404(component)
        if error:
            return error
        widget = board.get(request.args.get("session", DEFAULT_SESSION), component)
        return jsonify(widget.snapshot())

    @app.route("/api/widgets/<component>/retry", methods=["POST"])
    def retry_widget(component: str):
        source, error = _source_or_404(component)
        if error:
            return error
        widget = board.find(request.args.get("session", DEFAULT_SESSION), component)
        if widget is None:
            return jsonify({"error": "Nothing to retry"}), 409
        try:
            widget.retry(lambda q: pipeline.run(source, q))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 409
        return jsonify(widget.snapshot())

    @app.route("/api/smart-query", methods=["POST"])
    def smart_query_endpoint():
        body = request.get_json(silent=True) or {}
        query = str(body.get("query") or "").strip()
        if not query:
            return jsonify({"error": "query is required"}), 400
        if llm is None:
            return jsonify({"queries": {}})
        queries = smart_query(query, llm, sources, model_config)
        return jsonify({"queries": queries})

    # ── History API ────────────────────────────────────────────────────────

    @app.route("/api/history")
    def list_history():
        """Return a user's 50 most recent saved searches."""
        user_id = request.args.get("user_id", "").strip()
        if not user_id:
            return jsonify({"error": "user_id query param is required"}), 400
        return jsonify(
            [entry.model_dump(mode="json") for entry in history.list_for_user(user_id)]
        )

    @app.route("/api/history", methods=["POST"])
    def save_history():
        body = request.get_json(silent=True) or {}
        components = body.get("active_components") or []
        if not isinstance(components, list):
            return jsonify({"error": "active_components must be a list"}), 400
        try:
            entry = history.save(
                str(body.get("user_id") or ""),
                str(body.get("query") or ""),
                [str(name) for name in components],
            )
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        return jsonify(entry.model_dump(mode="json")), 201

    @app.route("/api/history/<int:entry_id>", methods=["DELETE"])
    def delete_history_entry(entry_id: int):
        user_id = request.args.get("user_id", "").strip()
        if not user_id:
            return jsonify({"error": "user_id query param is required"}), 400
        if not history.delete(user_id, entry_id):
            return jsonify({"error": "Not found"}), 404
        return jsonify({"deleted": entry_id})

    # ── Model configuration ────────────────────────────────────────────────

    @app.route("/api/models")
    def list_models():
        return jsonify([row.model_dump(mode="json") for row in model_config.list_models()])

    @app.route("/api/models/<api_name>", methods=["PUT"])
    def set_model(api_name: str):
        body = request.get_json(silent=True) or {}
        try:
            row = model_config.set_model(api_name, str(body.get("model_name") or ""))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        return jsonify(row.model_dump(mode="json"))

    @app.route("/api/models/<api_name>", methods=["DELETE"])
    def delete_model(api_name: str):
        if not model_config.delete(api_name):
            return jsonify({"error": "Not found"}), 404
        return jsonify({"deleted": api_name})

    return app


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    settings = Settings()
    create_app(settings).run(debug=settings.debug, host="0.0.0.0", port=settings.port)
