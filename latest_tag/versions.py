import re
from itertools import zip_longest
from typing import List, Tuple, Union

_VERSION_LIKE = re.compile(r"^[vr]?\d")
_VERSION_PARTS = re.compile(r"^[vr]?(\d+(?:\.\d+)*)(.*)$")

Identifier = Union[int, str]


def is_version_like(name: str) -> bool:
    """True for names like ``1.2``, ``v3`` or ``r12`` (optional v/r prefix, then a digit)."""
    return bool(_VERSION_LIKE.match(name))


def _parse(version: str) -> Tuple[List[int], List[Identifier]]:
    match = _VERSION_PARTS.match(version.strip())
    if not match:
        raise ValueError(f"Not a version-like identifier: {version!r}")
    release = [int(part) for part in match.group(1).split(".")]
    # build metadata never affects ordering
    suffix = match.group(2).split("+", 1)[0]
    prerelease: List[Identifier] = [
        int(part) if part.isdigit() else part
        for part in re.split(r"[.\-]", suffix)
        if part
    ]
    return release, prerelease


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _compare_prerelease(a: List[Identifier], b: List[Identifier]) -> int:
    if not a or not b:
        # a release outranks any pre-release of the same version
        return _cmp(not a, not b)
    for left, right in zip(a, b):
        if isinstance(left, int) and isinstance(right, int):
            result = _cmp(left, right)
        elif isinstance(left, int):
            result = -1
        elif isinstance(right, int):
            result = 1
        else:
            result = _cmp(left, right)
        if result:
            return result
    return _cmp(len(a), len(b))


def compare_versions(a: str, b: str) -> int:
    """
    Order two version strings: negative if ``a < b``, zero if equal, positive if ``a > b``.

    Segments are compared numerically ("2.9" < "2.10"), missing trailing
    segments count as zero and a ``v``/``r`` prefix is ignored. Callers are
    expected to filter non-version input with ``is_version_like`` first.
    """
    if a == b:
        return 0
    release_a, pre_a = _parse(a)
    release_b, pre_b = _parse(b)
    for left, right in zip_longest(release_a, release_b, fillvalue=0):
        if left != right:
            return _cmp(left, right)
    return _compare_prerelease(pre_a, pre_b)
