"""Wires the repository, dispatcher, extractor and bot together."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from mcpsim.config import Config
from mcpsim.context.extractor import ContextExtractor
from mcpsim.github.bot import PRBot
from mcpsim.github.client import GitHubClient
from mcpsim.storage.db import get_connection
from mcpsim.storage.repository import Repository
from mcpsim.storage.seed import seed_sample_data
from mcpsim.tools.dispatcher import ToolDispatcher


@dataclass
class Services:
    conn: sqlite3.Connection
    repo: Repository
    dispatcher: ToolDispatcher
    extractor: ContextExtractor
    github: GitHubClient
    bot: PRBot

    def close(self) -> None:
        self.github.close()
        self.conn.close()


def build_services(config: Config, conn: sqlite3.Connection | None = None) -> Services:
    """Build the service graph on top of one connection.

    Opens config.db_path unless a connection is passed in. Seeds the sample
    tools and providers into an empty store when config.seed_sample_data is set.
    """
    if conn is None:
        conn = get_connection(config.db_path)
    repo = Repository(conn)

    if config.seed_sample_data:
        seed_sample_data(repo)

    dispatcher = ToolDispatcher(repo, timeout=config.tool_timeout)
    extractor = ContextExtractor(repo, ttl=config.cache_ttl)
    github = GitHubClient()
    bot = PRBot(repo, dispatcher, extractor, github, command_prefix=config.command_prefix)

    return Services(
        conn=conn,
        repo=repo,
        dispatcher=dispatcher,
        extractor=extractor,
        github=github,
        bot=bot,
    )
