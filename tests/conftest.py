"""Shared pytest fixtures for discussion-mirror tests.

Fixture Organization:
    - Config fixtures: MirrorConfig instances isolated from the host environment
    - Storage fixtures: SQLite content repositories under tmp_path
    - Remote fixtures: httpx.MockTransport handlers standing in for GitHub
"""

import json
import logging
import sys
from pathlib import Path

import httpx
import pytest

from discussion_mirror.config import MirrorConfig, reset_config
from discussion_mirror.storage import ContentRepository, DiscussionStore

# Make graphql_fixtures importable from test modules
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

CONFIG_ENV_VARS = [name.upper() for name in MirrorConfig.model_fields]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Strip configuration env vars so host settings never leak into tests."""
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo configure_logging() so caplog keeps seeing package records."""
    logger = logging.getLogger("discussion_mirror")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def make_config(tmp_path):
    """Factory building a MirrorConfig with test defaults plus overrides.

    Example:
        config = make_config(github_repositories="a, ,b")
    """

    def _make(**overrides) -> MirrorConfig:
        values = {
            "github_access_token": "ghp_test_token_123",
            "github_organization": "acme",
            "github_repositories": "docs",
            "database_path": tmp_path / "discussions.db",
            "lock_path": tmp_path / "run.lock",
        }
        values.update(overrides)
        return MirrorConfig(_env_file=None, **values)

    return _make


@pytest.fixture
def content_repository(tmp_path):
    """Open ContentRepository on a fresh database file."""
    repository = ContentRepository(tmp_path / "discussions.db")
    yield repository
    repository.close()


@pytest.fixture
def discussion_store(content_repository):
    return DiscussionStore(content_repository)


@pytest.fixture
def graphql_calls():
    """Repository names requested through the mock transport, in order."""
    return []


@pytest.fixture
def make_transport(graphql_calls):
    """Factory for an httpx.MockTransport answering per repository name.

    Args (of the returned factory):
        responses: repository name -> httpx.Response, a zero-argument
            callable building one per request, or an exception
            class/instance raised instead of answering
    """

    def _make(responses: dict) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            name = payload["variables"]["name"]
            graphql_calls.append(name)
            result = responses[name]
            if callable(result) and not isinstance(result, type):
                result = result()
            if isinstance(result, type) and issubclass(result, httpx.TransportError):
                raise result("connection failed", request=request)
            if isinstance(result, Exception):
                raise result
            return result

        return httpx.MockTransport(handler)

    return _make
