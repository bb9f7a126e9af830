import re
import uuid
from typing import Tuple
from urllib.parse import quote, urlparse

_NON_DIGITS = re.compile(r"\D")


def parse_repo_url(repo_url: str) -> Tuple[str, str]:
    """
    Parse a GitHub repo URL and return (owner, repo)
    Accepts: https://github.com/owner/repo, git@github.com:owner/repo.git, owner/repo
    """
    repo_url = (repo_url or "").strip()
    if repo_url.startswith("http"):
        parsed = urlparse(repo_url.rstrip("/"))
        host = parsed.netloc.lower()
        if host not in ("github.com", "www.github.com"):
            raise ValueError("Unsupported host; only github.com is allowed")
        parts = parsed.path.strip("/").split("/")
        if len(parts) < 2:
            raise ValueError("Malformed GitHub URL")
        # deeper paths (/tree/main/...) still name the repo in the first two segments
        owner, repo = parts[0], parts[1]
        return owner, _strip_git_suffix(repo)
    if repo_url.startswith("git@"):
        m = re.match(r"git@github\.com:([^/]+)/(.+?)(\.git)?$", repo_url)
        if m:
            return m.group(1), m.group(2)
        raise ValueError("Unsupported git SSH URL; only github.com is allowed")
    if repo_url.count("/") == 1:
        owner, repo = repo_url.split("/", 1)
        if owner and repo:
            return owner, _strip_git_suffix(repo)
    raise ValueError("Unsupported repo URL format")


def _strip_git_suffix(name: str) -> str:
    return name[:-4] if name.endswith(".git") else name


def repo_slug(repo_url: str) -> str:
    owner, repo = parse_repo_url(repo_url)
    return f"{owner}/{repo}"


def release_tag_path(owner: str, repo: str, tag: str) -> str:
    return f"/{owner}/{repo}/releases/tag/{quote(tag, safe='/')}"


def digits_only(text: str) -> str:
    return _NON_DIGITS.sub("", text or "")


def generate_resolution_id():
    return uuid.uuid4().hex[:12]
