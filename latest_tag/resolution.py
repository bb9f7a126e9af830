from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Sequence, Union

from latest_tag.versions import compare_versions, is_version_like


@dataclass(frozen=True)
class Tag:
    name: str
    commit: str


@dataclass(frozen=True)
class RepoPublishState:
    """latest_tag is False when the repository has no tags at all."""

    latest_tag: Union[str, bool]
    is_up_to_date: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"latest_tag": self.latest_tag, "is_up_to_date": self.is_up_to_date}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepoPublishState":
        return cls(latest_tag=data["latest_tag"], is_up_to_date=bool(data["is_up_to_date"]))


NO_TAGS = RepoPublishState(latest_tag=False, is_up_to_date=False)


def tags_from_nodes(nodes: Iterable[Dict[str, Any]]) -> List[Tag]:
    """
    Build tags from GraphQL ref nodes.
    Annotated tags point at a tag object; follow it one level to the commit.
    """
    tags = []
    for node in nodes:
        target = node["tag"]
        commit = (target.get("commit") or {}).get("oid") or target["oid"]
        tags.append(Tag(name=node["name"], commit=commit))
    return tags


def select_latest_tag(tags: Sequence[Tag]) -> Tag:
    """
    tags must be newest-first by commit date.
    When every name is a version, the highest version wins instead; the sort is
    stable so among equal versions the one later in the input wins.
    """
    if not tags:
        raise ValueError("Cannot select the latest tag from an empty list")
    if all(is_version_like(tag.name) for tag in tags):
        ordered = sorted(tags, key=cmp_to_key(lambda t1, t2: compare_versions(t1.name, t2.name)))
        return ordered[-1]
    return tags[0]


def resolve_publish_state(tags: Sequence[Tag], default_branch_commit: str) -> RepoPublishState:
    if not tags:
        return NO_TAGS
    latest = select_latest_tag(tags)
    return RepoPublishState(
        latest_tag=latest.name,
        is_up_to_date=latest.commit == default_branch_commit,
    )
