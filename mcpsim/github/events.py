"""Parsing helpers for GitHub webhook payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

PR_ACTIONS = ("opened", "synchronize", "reopened")
HEADS_PREFIX = "refs/heads/"


@dataclass
class PRContext:
    """The slice of a pull request the bot works with."""

    repository: str
    branch: str
    pr_number: int
    title: str
    description: str
    files: list[dict] = field(default_factory=list)  # {filename, status, additions, deletions, patch?}
    author: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


def _parse_ts(value: str | None) -> datetime:
    if not value:
        return datetime.now()
    # GitHub sends "2024-06-01T12:00:00Z"
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _normalize_file(item: dict) -> dict:
    normalized = {
        "filename": item.get("filename", ""),
        "status": item.get("status", "modified"),
        "additions": item.get("additions", 0),
        "deletions": item.get("deletions", 0),
    }
    if item.get("patch"):
        normalized["patch"] = item["patch"]
    return normalized


def pr_context_from_payload(payload: dict) -> PRContext:
    """Build a PRContext from a pull_request event payload."""
    pr = payload.get("pull_request") or {}
    repository = payload.get("repository") or {}
    files = pr.get("files") or payload.get("files") or []
    return PRContext(
        repository=repository.get("clone_url", ""),
        branch=(pr.get("head") or {}).get("ref", ""),
        pr_number=pr.get("number", 0),
        title=pr.get("title") or "",
        description=pr.get("body") or "",
        files=[_normalize_file(f) for f in files],
        author=(pr.get("user") or {}).get("login", ""),
        created_at=_parse_ts(pr.get("created_at")),
        updated_at=_parse_ts(pr.get("updated_at")),
    )


def branch_from_ref(ref: str) -> str:
    if ref.startswith(HEADS_PREFIX):
        return ref[len(HEADS_PREFIX):]
    return ref


def normalize_commits(commits: list[dict]) -> list[dict]:
    return [
        {
            "id": c.get("id"),
            "message": c.get("message"),
            "author": c.get("author"),
            "timestamp": c.get("timestamp"),
        }
        for c in commits
    ]


def parse_command(body: str, prefix: str) -> str | None:
    """Return the sub-command of a bot comment, or None if it isn't one."""
    if not body.startswith(prefix):
        return None
    parts = body.strip().split()
    if len(parts) < 2 or parts[0] != prefix:
        return None
    return parts[1]
