"""PR automation bot driven by GitHub webhook events.

pull_request events run the full pipeline: record the integration, gather
context for the change, analyze it (calling the code_analyzer tool per
changed file), derive suggestions and post a summary comment. push events
leave a one-shot record. issue_comment events carry bot commands.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from mcpsim.context.extractor import ContextExtractor
from mcpsim.config import DEFAULT_COMMAND_PREFIX
from mcpsim.github.client import GitHubClient
from mcpsim.github.events import (
    PR_ACTIONS,
    PRContext,
    branch_from_ref,
    normalize_commits,
    parse_command,
    pr_context_from_payload,
)
from mcpsim.models import (
    INTEGRATION_COMPLETED,
    INTEGRATION_FAILED,
    INTEGRATION_PROCESSING,
    INTEGRATION_PUSH_PROCESSED,
    PRIntegration,
)
from mcpsim.storage.repository import Repository
from mcpsim.tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)

QUALITY_THRESHOLD = 80
MIN_DESCRIPTION_LENGTH = 50

REFACTOR_SUGGESTION = "Consider refactoring complex functions to improve maintainability"
DESCRIPTION_SUGGESTION = "Add a more detailed description to help reviewers understand the changes"

WebhookHandler = Callable[[dict], Awaitable[None]]


@dataclass
class InjectionResult:
    pr_number: int
    injected_context: dict
    suggested_actions: list[str] = field(default_factory=list)
    analysis: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


class PRBot:
    """Reacts to webhook events using the tool dispatcher and context extractor."""

    def __init__(
        self,
        repo: Repository,
        dispatcher: ToolDispatcher,
        extractor: ContextExtractor,
        github: GitHubClient,
        command_prefix: str = DEFAULT_COMMAND_PREFIX,
    ) -> None:
        self._repo = repo
        self._dispatcher = dispatcher
        self._extractor = extractor
        self._github = github
        self._prefix = command_prefix
        self._handlers: dict[str, WebhookHandler] = {
            "pull_request": self._on_pull_request,
            "push": self._on_push,
            "issue_comment": self._on_issue_comment,
        }

    async def handle_webhook(self, event: str, payload: dict) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            logger.warning(f"No handler registered for webhook event: {event}")
            return
        await handler(payload)

    async def _on_pull_request(self, payload: dict) -> None:
        action = payload.get("action")
        if action not in PR_ACTIONS:
            logger.info(f"Ignoring pull_request action: {action}")
            return
        await self.process_pull_request(pr_context_from_payload(payload))

    async def _on_push(self, payload: dict) -> None:
        repo_url = (payload.get("repository") or {}).get("clone_url") or ""
        branch = branch_from_ref(payload.get("ref") or "")
        await self.process_push(repo_url, branch, payload.get("commits") or [])

    async def _on_issue_comment(self, payload: dict) -> None:
        issue = payload.get("issue") or {}
        body = (payload.get("comment") or {}).get("body") or ""
        if not issue.get("pull_request") or not body.startswith(self._prefix):
            return
        await self.handle_bot_command(payload)

    async def process_pull_request(self, pr: PRContext) -> InjectionResult:
        """Run the analysis pipeline for one PR.

        The integration record ends in "completed", or in "failed" with the
        error in its metadata, in which case the exception is re-raised.
        """
        integration = self._repo.create_integration(
            repo_url=pr.repository,
            branch=pr.branch,
            pr_number=pr.pr_number,
            status=INTEGRATION_PROCESSING,
            mcp_context={},
            metadata={
                "title": pr.title,
                "author": pr.author,
                "created_at": pr.created_at.isoformat(),
            },
        )

        try:
            extracted = await self._gather_context(pr)
            analysis, tools_used = await self._analyze(pr)
            suggestions = generate_suggestions(pr, analysis)

            injected_context = {
                "repository": pr.repository,
                "branch": pr.branch,
                "pr_number": pr.pr_number,
                "extracted_context": extracted,
                "analysis": analysis,
                "suggestions": suggestions,
                "metadata": {
                    "processed_at": datetime.now().isoformat(),
                    "tools_used": tools_used,
                    "context_sources": sorted({c["type"] for c in extracted}),
                },
            }

            self._repo.update_integration(
                integration.id,
                status=INTEGRATION_COMPLETED,
                mcp_context=injected_context,
            )
            self._github.post_comment(pr.pr_number, format_analysis_comment(injected_context))
        except Exception as e:
            logger.error(f"PR #{pr.pr_number} processing failed: {e}")
            self._repo.update_integration(
                integration.id,
                status=INTEGRATION_FAILED,
                metadata={**integration.metadata, "error": str(e)},
            )
            raise

        return InjectionResult(
            pr_number=pr.pr_number,
            injected_context=injected_context,
            suggested_actions=suggestions,
            analysis=analysis,
        )

    async def process_push(self, repo_url: str, branch: str, commits: list[dict]) -> PRIntegration:
        normalized = normalize_commits(commits)
        integration = self._repo.create_integration(
            repo_url=repo_url,
            branch=branch,
            status=INTEGRATION_PUSH_PROCESSED,
            mcp_context={"commits": normalized},
            metadata={"event": "push", "commit_count": len(normalized)},
        )
        logger.info(f"Recorded push of {len(normalized)} commit(s) to {branch}")
        return integration

    async def handle_bot_command(self, payload: dict) -> None:
        body = (payload.get("comment") or {}).get("body") or ""
        pr_number = (payload.get("issue") or {}).get("number")
        command = parse_command(body, self._prefix)

        if command == "analyze":
            await self.process_pull_request(self._context_for_command(pr_number, payload))
        elif command == "context":
            integration = self._latest_integration(pr_number)
            if integration is None:
                logger.info(f"No stored MCP context for PR #{pr_number}")
                return
            self._github.post_comment(
                pr_number,
                "### Current MCP Context\n```json\n"
                f"{json.dumps(integration.mcp_context, indent=2, default=str)}\n```",
            )
        elif command == "help":
            self._github.post_comment(pr_number, format_help(self._prefix))
        else:
            logger.debug(f"Ignoring unknown bot command: {command}")

    async def _gather_context(self, pr: PRContext) -> list[dict]:
        contexts: list[dict] = [
            {
                "type": "file",
                "path": f["filename"],
                "changes": {
                    "additions": f.get("additions", 0),
                    "deletions": f.get("deletions", 0),
                    "status": f.get("status", "modified"),
                },
            }
            for f in pr.files
        ]
        contexts.append({"type": "commits", "branch": pr.branch, "recent_commits": []})

        if pr.repository:
            for result in await self._extractor.search_context(pr.repository):
                contexts.append(
                    {"type": "cached", "key": result.key, "provider_id": result.provider_id}
                )
        return contexts

    async def _analyze(self, pr: PRContext) -> tuple[dict, list[str]]:
        analysis = {
            "code_quality": {
                "score": 85,
                "issues": [
                    {
                        "severity": "warning",
                        "file": "src/app.ts",
                        "line": 42,
                        "message": "Unused variable 'temp'",
                    }
                ],
                "files": {},
            },
            "security": {"score": 100, "vulnerabilities": []},
            "performance": {
                "suggestions": [
                    "Consider using memo for expensive computations in React components",
                    "Database queries could be optimized with proper indexing",
                ]
            },
            "dependencies": {
                "outdated": ["express@4.17.1 (latest: 4.18.2)"],
                "security": [],
            },
        }
        tools_used: list[str] = []

        analyzer = self._repo.get_tool_by_name("code_analyzer")
        if analyzer is not None and pr.files:
            tools_used.append(analyzer.name)
            for f in pr.files:
                result = await self._dispatcher.execute(
                    analyzer.id,
                    {"filePath": f["filename"], "analysisType": "complexity"},
                )
                if result.success:
                    analysis["code_quality"]["files"][f["filename"]] = result.data.get("result")

        return analysis, tools_used

    def _latest_integration(self, pr_number: int | None) -> PRIntegration | None:
        if pr_number is None:
            return None
        integrations = self._repo.get_integrations_for_pr(pr_number)
        return integrations[0] if integrations else None

    def _context_for_command(self, pr_number: int, payload: dict) -> PRContext:
        """Rebuild a PRContext from the last stored integration, else from the comment payload."""
        issue = payload.get("issue") or {}
        repository = payload.get("repository") or {}
        integration = self._latest_integration(pr_number)
        if integration is not None:
            return PRContext(
                repository=integration.repo_url,
                branch=integration.branch,
                pr_number=pr_number,
                title=integration.metadata.get("title") or issue.get("title") or "",
                description=issue.get("body") or "",
                author=integration.metadata.get("author") or "",
            )
        return PRContext(
            repository=repository.get("clone_url", ""),
            branch=repository.get("default_branch") or "main",
            pr_number=pr_number,
            title=issue.get("title") or "",
            description=issue.get("body") or "",
            author=(issue.get("user") or {}).get("login", ""),
        )


def generate_suggestions(pr: PRContext, analysis: dict) -> list[str]:
    suggestions: list[str] = []

    if analysis["code_quality"]["score"] < QUALITY_THRESHOLD:
        suggestions.append(REFACTOR_SUGGESTION)

    outdated = analysis["dependencies"]["outdated"]
    if outdated:
        suggestions.append(f"Update {len(outdated)} outdated dependencies")

    suggestions.extend(analysis["performance"]["suggestions"])

    if not pr.description or len(pr.description) < MIN_DESCRIPTION_LENGTH:
        suggestions.append(DESCRIPTION_SUGGESTION)

    return suggestions


def format_analysis_comment(injected_context: dict) -> str:
    """Render the Markdown summary posted on the PR."""
    analysis = injected_context["analysis"]
    suggestions = injected_context["suggestions"]
    meta = injected_context["metadata"]
    quality = analysis["code_quality"]
    security = analysis["security"]

    lines = ["## \U0001f916 MCP Analysis Results", ""]

    lines.append("### Code Quality")
    lines.append(f"- **Score**: {quality['score']}/100")
    if quality["issues"]:
        lines.append(f"- **Issues Found**: {len(quality['issues'])}")
    if quality.get("files"):
        lines.append(f"- **Files Analyzed**: {len(quality['files'])}")
    lines.append("")

    lines.append("### Security")
    lines.append(f"- **Score**: {security['score']}/100")
    lines.append(f"- **Vulnerabilities**: {len(security['vulnerabilities']) or 'None found'}")
    lines.append("")

    if suggestions:
        lines.append("### \U0001f4a1 Suggestions")
        lines.extend(f"- {s}" for s in suggestions)
        lines.append("")

    lines.append("### \U0001f4cb MCP Context")
    lines.append(f"- **Tools Used**: {', '.join(meta['tools_used']) or 'none'}")
    lines.append(f"- **Context Sources**: {', '.join(meta['context_sources'])}")
    lines.append(f"- **Processed At**: {meta['processed_at']}")

    return "\n".join(lines)


def format_help(prefix: str) -> str:
    return "\n".join(
        [
            "### MCP Bot Commands",
            f"- `{prefix} analyze` - Re-run MCP analysis",
            f"- `{prefix} context` - Show current MCP context",
            f"- `{prefix} help` - Show this help message",
        ]
    )
