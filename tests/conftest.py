"""
Pytest configuration and shared fixtures for all tests.
"""
import os
from unittest.mock import AsyncMock, Mock

import pytest

# Set test environment variables
os.environ["GITHUB_TOKEN"] = "test_token"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["FEATURE_NAME"] = "latest-tag-button"
os.environ["DEFAULT_USER_AGENT"] = "test-agent"

from latest_tag.cache import MemoryCacheStore  # noqa: E402
from latest_tag.resilience import graphql_breaker, release_page_breaker  # noqa: E402
from latest_tag.resolution import Tag  # noqa: E402

DAY = 24 * 60 * 60

RELEASE_PAGE_HTML = """
<html><body>
  <div class="release-header">
    <p class="f1">v1.4.0</p>
    <div class="text-small">
      <relative-time datetime="2024-01-01T00:00:00Z">Jan 1, 2024</relative-time>
      <a href="/test/repo/compare/v1.4.0...main">{text}</a>
    </div>
  </div>
</body></html>
"""


class FakeClock:
    """Callable clock whose time only moves when a test advances it."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def advance_days(self, days: float) -> None:
        self.advance(days * DAY)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return MemoryCacheStore()


@pytest.fixture(autouse=True)
def reset_breakers():
    """Breakers are process-wide; never let one test's failures block another."""
    graphql_breaker.reset()
    release_page_breaker.reset()
    yield
    graphql_breaker.reset()
    release_page_breaker.reset()


@pytest.fixture
def versioned_tags():
    return [
        Tag(name="v1.10.0", commit="c110"),
        Tag(name="v1.9.2", commit="c192"),
        Tag(name="v2.0.0-beta.1", commit="c200b1"),
        Tag(name="v1.2.0", commit="c120"),
    ]


@pytest.fixture
def graphql_nodes():
    """Ref nodes as returned by the GraphQL API: one annotated tag, one lightweight."""
    return [
        {"name": "v2.0.0", "tag": {"oid": "tagobj200", "commit": {"oid": "c200"}}},
        {"name": "v1.0.0", "tag": {"oid": "c100"}},
    ]


@pytest.fixture
def release_page_html():
    return RELEASE_PAGE_HTML.format(text="4 commits to main since this tag")


@pytest.fixture
def mock_github_client():
    """GitHubClient stand-in with async collaborator methods."""
    client = Mock()
    client.query_publish_metadata = AsyncMock(
        return_value=([Tag(name="v2.0.0", commit="c200"), Tag(name="v1.0.0", commit="c100")], "c300")
    )
    client.fetch_release_page = AsyncMock()
    return client


@pytest.fixture
def sample_workflow_config():
    """Sample workflow configuration for testing."""
    return {
        "repo_url": "https://github.com/test/repo",
        "resolution_id": "test123",
    }


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "component: mark test as a component test"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file location."""
    for item in items:
        path = str(item.fspath)
        if os.sep + "unit" + os.sep in path:
            item.add_marker(pytest.mark.unit)
        elif os.sep + "component" + os.sep in path:
            item.add_marker(pytest.mark.component)
