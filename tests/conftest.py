"""Shared fixtures: explicit settings, fake HTTP responses and a scripted session."""

from unittest.mock import MagicMock

import pytest

from config.settings import Settings


def make_settings(**overrides) -> Settings:
    """Settings with every credential filled in, independent of the environment."""
    values = dict(
        llm_api_key="groq-key",
        llm_base_url="https://llm.test/v1",
        reddit_client_id="reddit-id",
        reddit_client_secret="reddit-secret",
        rapidapi_key="rapid-key",
        x_rapidapi_key="x-key",
        facebook_rapidapi_key="fb-key",
        facebook_llm_api_key="fb-groq-key",
        strategy_llm_api_key="strategy-groq-key",
        youtube_api_key="yt-key",
        tavily_api_key="tavily-key",
        request_timeout=5.0,
        db_path="unused.db",
        debug=False,
        port=5001,
    )
    values.update(overrides)
    return Settings(**values)


def fake_response(body=None, status: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


def scripted_session(routes) -> MagicMock:
    """A session whose ``request`` answers by the first matching URL fragment.

    *routes* is a list of ``(fragment, response_or_exception)`` pairs; a value
    may also be a list, consumed one call at a time.
    """
    session = MagicMock()

    def request(method, url, **kwargs):
        for fragment, outcome in routes:
            if fragment in url:
                if isinstance(outcome, list):
                    outcome = outcome.pop(0)
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise AssertionError(f"unexpected request: {method} {url}")

    session.request.side_effect = request
    return session


@pytest.fixture
def settings() -> Settings:
    return make_settings()
