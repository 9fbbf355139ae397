"""Sample tools and context providers for a fresh store."""

from __future__ import annotations

import logging

from mcpsim.storage.repository import Repository

logger = logging.getLogger(__name__)

SAMPLE_TOOLS = [
    {
        "name": "web_search",
        "description": "Search the web for information",
        "schema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query"},
                "limit": {"type": "number", "description": "Number of results", "default": 10},
            },
            "required": ["query"],
        },
        "category": "search",
    },
    {
        "name": "file_reader",
        "description": "Read file contents from the filesystem",
        "schema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "File path"},
                "encoding": {"type": "string", "description": "File encoding", "default": "utf8"},
            },
            "required": ["path"],
        },
        "category": "file",
    },
    {
        "name": "code_analyzer",
        "description": "Analyze code structure and dependencies",
        "schema": {
            "type": "object",
            "properties": {
                "filePath": {"type": "string", "description": "Path to analyze"},
                "analysisType": {
                    "type": "string",
                    "enum": ["dependencies", "structure", "complexity"],
                    "description": "Type of analysis",
                },
            },
            "required": ["filePath", "analysisType"],
        },
        "category": "analysis",
    },
]

SAMPLE_PROVIDERS = [
    {
        "name": "GitHub Repository",
        "type": "git",
        "config": {
            "repository": "https://github.com/example/repo",
            "branch": "main",
            "includePatterns": ["**/*.ts", "**/*.tsx"],
            "excludePatterns": ["node_modules/**", "dist/**"],
        },
    },
    {
        "name": "Project Files",
        "type": "file",
        "config": {
            "basePath": "./",
            "includePatterns": ["src/**", "docs/**"],
            "excludePatterns": ["**/*.log", "**/.git/**"],
        },
    },
    {
        "name": "API Documentation",
        "type": "api",
        "config": {
            "endpoint": "https://api.example.com/docs",
            "authType": "bearer",
            "refreshInterval": 3600,
        },
    },
]


def seed_sample_data(repo: Repository) -> bool:
    """Insert the sample tools and providers into an empty store.

    Returns True if anything was written. A store that already has tools or
    providers is left untouched.
    """
    if repo.get_tools() or repo.get_providers():
        return False

    for tool in SAMPLE_TOOLS:
        repo.create_tool(**tool)
    for provider in SAMPLE_PROVIDERS:
        repo.create_provider(**provider)

    logger.info(f"Seeded {len(SAMPLE_TOOLS)} tools and {len(SAMPLE_PROVIDERS)} providers")
    return True
