"""Built-in simulated tool handlers.

Nothing here touches the network or the filesystem. Each handler is an async
callable taking the sanitized params dict and returning a JSON-friendly payload.
"""

from __future__ import annotations

import copy
import random
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

ToolHandler = Callable[[dict], Awaitable[Any]]

DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 50

ANALYSES: dict[str, dict] = {
    "dependencies": {
        "imports": ["react", "express", "@shared/schema"],
        "exports": ["McpSimulator", "McpContext"],
        "externalDependencies": 12,
        "internalDependencies": 5,
    },
    "structure": {
        "classes": 3,
        "functions": 15,
        "interfaces": 7,
        "linesOfCode": 250,
        "complexity": "medium",
    },
    "complexity": {
        "cyclomaticComplexity": 8,
        "cognitiveComplexity": 12,
        "maintainabilityIndex": 75,
        "technicalDebt": "2 hours",
    },
}


async def web_search(params: dict) -> dict:
    query = params.get("query")
    if not isinstance(query, str) or not query.strip():
        raise ValueError("Query must be a non-empty string")

    limit = params.get("limit", DEFAULT_SEARCH_LIMIT)
    if isinstance(limit, bool) or not isinstance(limit, (int, float)):
        raise ValueError("Limit must be a number")
    if limit < 1 or limit > MAX_SEARCH_LIMIT:
        raise ValueError(f"Limit must be between 1 and {MAX_SEARCH_LIMIT}")
    limit = min(int(limit), MAX_SEARCH_LIMIT)

    results = [
        {
            "title": f"Result {i + 1} for: {query}",
            "url": f"https://example.com/result-{i + 1}",
            "snippet": (
                f'This is a simulated search result for the query "{query}". '
                "In a real implementation, this would connect to a search API."
            ),
            "relevanceScore": random.random(),
        }
        for i in range(limit)
    ]
    results.sort(key=lambda r: r["relevanceScore"], reverse=True)

    return {
        "query": query,
        "totalResults": limit * 10,
        "results": results,
    }


async def file_reader(params: dict) -> dict:
    path = params.get("path")
    encoding = params.get("encoding", "utf8")
    return {
        "path": path,
        "encoding": encoding,
        "content": (
            f"// Simulated content of file: {path}\n\n"
            "export function example() {\n"
            '  console.log("This is simulated file content");\n'
            "}\n"
        ),
        "metadata": {
            "size": 1024,
            "lastModified": datetime.now().isoformat(),
            "mimeType": "text/plain",
        },
    }


async def code_analyzer(params: dict) -> dict:
    file_path = params.get("filePath")
    analysis_type = params.get("analysisType")
    # Unknown types are reported in the payload, not raised
    result = ANALYSES.get(analysis_type) if isinstance(analysis_type, str) else None
    if result is None:
        result = {"error": "Unknown analysis type"}
    return {
        "filePath": file_path,
        "analysisType": analysis_type,
        "result": copy.deepcopy(result),
    }


BUILTIN_HANDLERS: dict[str, ToolHandler] = {
    "web_search": web_search,
    "file_reader": file_reader,
    "code_analyzer": code_analyzer,
}
