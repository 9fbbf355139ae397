"""Simulated GitHub client for posting PR comments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass
class PostedComment:
    pr_number: int
    body: str
    posted_at: datetime = field(default_factory=datetime.now)


class GitHubClient:
    """Stand-in for a GitHub API client. Comments are kept in memory and logged.

    Usage:
        client = GitHubClient()
        client.post_comment(42, "LGTM")
        client.comments_for(42)  # [PostedComment(...)]
    """

    def __init__(self) -> None:
        self._comments: list[PostedComment] = []

    @property
    def comments(self) -> list[PostedComment]:
        return list(self._comments)

    def comments_for(self, pr_number: int) -> list[PostedComment]:
        return [c for c in self._comments if c.pr_number == pr_number]

    def post_comment(self, pr_number: int, body: str) -> PostedComment:
        comment = PostedComment(pr_number=pr_number, body=body)
        self._comments.append(comment)
        logger.info(f"Posting comment to PR #{pr_number}:\n{body}")
        return comment

    def close(self) -> None:
        self._comments.clear()
