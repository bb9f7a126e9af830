"""
Unit tests for utility functions.
"""
import pytest

from latest_tag.utils import (
    digits_only,
    generate_resolution_id,
    parse_repo_url,
    release_tag_path,
    repo_slug,
)


class TestUtils:
    """Unit tests for utility functions."""

    def test_generate_resolution_id(self):
        resolution_id = generate_resolution_id()

        assert isinstance(resolution_id, str)
        assert len(resolution_id) == 12
        assert resolution_id.isalnum()
        assert resolution_id != generate_resolution_id()

    def test_parse_repo_url_valid(self):
        assert parse_repo_url("https://github.com/facebook/react") == ("facebook", "react")

    def test_parse_repo_url_with_www(self):
        assert parse_repo_url("https://www.github.com/microsoft/vscode") == ("microsoft", "vscode")

    def test_parse_repo_url_with_trailing_slash(self):
        assert parse_repo_url("https://github.com/tensorflow/tensorflow/") == ("tensorflow", "tensorflow")

    def test_parse_repo_url_with_dot_git(self):
        assert parse_repo_url("https://github.com/facebook/react.git") == ("facebook", "react")

    def test_parse_repo_url_deep_link(self):
        assert parse_repo_url("https://github.com/sindresorhus/got/tree/main/source") == ("sindresorhus", "got")

    def test_parse_repo_url_keeps_git_inside_name(self):
        assert parse_repo_url("https://github.com/owner/my.github.io") == ("owner", "my.github.io")

    def test_parse_repo_url_ssh(self):
        assert parse_repo_url("git@github.com:octocat/Hello-World.git") == ("octocat", "Hello-World")

    def test_parse_repo_url_slug(self):
        assert parse_repo_url("octocat/Hello-World") == ("octocat", "Hello-World")

    def test_parse_repo_url_invalid_host(self):
        with pytest.raises(ValueError, match="Unsupported host; only github.com is allowed"):
            parse_repo_url("https://gitlab.com/user/repo")

    def test_parse_repo_url_malformed(self):
        with pytest.raises(ValueError, match="Malformed GitHub URL"):
            parse_repo_url("https://github.com/user")

    @pytest.mark.parametrize("value", ["", "justaname", "a/b/c", "/repo", "git@gitlab.com:a/b.git"])
    def test_parse_repo_url_unsupported(self, value):
        with pytest.raises(ValueError):
            parse_repo_url(value)

    def test_repo_slug(self):
        assert repo_slug("https://github.com/Test/Repo.git") == "Test/Repo"

    def test_release_tag_path(self):
        assert release_tag_path("a", "b", "v1.0.0") == "/a/b/releases/tag/v1.0.0"
        assert release_tag_path("a", "b", "release/1.0 rc") == "/a/b/releases/tag/release/1.0%20rc"

    @pytest.mark.parametrize("text, expected", [
        ("4", "4"),
        ("12", "12"),
        ("4 commits to master since this tag", "4"),
        ("1,024 commits to main since this tag", "1024"),
        ("", ""),
    ])
    def test_digits_only(self, text, expected):
        assert digits_only(text) == expected
