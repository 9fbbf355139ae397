"""Shared UI components for the mcpsim Streamlit app."""

from __future__ import annotations

import json

import streamlit as st

from mcpsim.models import PRIntegration, ToolRequest

STATUS_EMOJI = {
    "completed": "\U0001f7e2",
    "failed": "\U0001f534",
    "processing": "\U0001f7e1",
    "push_processed": "\U0001f535",
}

CATEGORY_EMOJI = {
    "search": "\U0001f50d",
    "file": "\U0001f4c1",
    "analysis": "\U0001f4ca",
}

PROVIDER_EMOJI = {
    "file": "\U0001f4c4",
    "git": "\U0001f33f",
    "api": "\U0001f310",
    "database": "\U0001f5c4\ufe0f",
}

# Placeholder values for a params template, by JSON-schema type
TYPE_PLACEHOLDERS = {
    "string": "",
    "number": 0,
    "integer": 0,
    "boolean": False,
    "array": [],
}


def status_badge(status: str) -> str:
    """Return an emoji + label for a request or integration status."""
    emoji = STATUS_EMOJI.get(status, "\u26aa")
    return f"{emoji} {status}"


def category_icon(category: str) -> str:
    return CATEGORY_EMOJI.get(category, "\U0001f527")


def provider_icon(provider_type: str) -> str:
    return PROVIDER_EMOJI.get(provider_type, "\u2753")


def format_execution_time(ms: int) -> str:
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.2f}s"


def parse_params_json(text: str) -> dict:
    """Parse the params text area. Blank input means no params.

    Raises ValueError if the text is not a JSON object.
    """
    if not text.strip():
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e.msg} (line {e.lineno})") from e
    if not isinstance(parsed, dict):
        raise ValueError("Params must be a JSON object")
    return parsed


def params_template(schema: dict) -> str:
    """Pre-fill text for a tool's params: every declared property with a placeholder."""
    properties = schema.get("properties") or {}
    template = {}
    for name, prop in properties.items():
        if "default" in prop:
            template[name] = prop["default"]
        elif prop.get("enum"):
            template[name] = prop["enum"][0]
        else:
            template[name] = TYPE_PLACEHOLDERS.get(prop.get("type"), "")
    return json.dumps(template, indent=2)


def truncate(text: str, limit: int = 200) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def render_request_row(r: ToolRequest, tool_name: str) -> None:
    """Render one ledger entry as an expandable card."""
    label = f"{status_badge(r.status)} #{r.id} {tool_name} ({format_execution_time(r.execution_time)})"
    with st.expander(label):
        if r.error:
            st.error(r.error)
        st.markdown("**Input**")
        st.json(r.input)
        if r.output is not None:
            st.markdown("**Output**")
            st.json(r.output)
        st.caption(f"Created: {r.created_at:%Y-%m-%d %H:%M:%S}")


def render_integration_card(i: PRIntegration) -> None:
    title = f"PR #{i.pr_number}" if i.pr_number is not None else "Push"
    with st.expander(f"{status_badge(i.status)} {title} - {i.repo_url} ({i.branch})"):
        if i.metadata.get("error"):
            st.error(i.metadata["error"])
        if i.metadata.get("title"):
            st.markdown(f"**Title:** {i.metadata['title']}")
        suggestions = i.mcp_context.get("suggestions") or []
        if suggestions:
            st.markdown("**Suggestions:**")
            for s in suggestions:
                st.markdown(f"- {s}")
        with st.popover("MCP context"):
            st.json(i.mcp_context)
        st.caption(f"Updated: {i.updated_at:%Y-%m-%d %H:%M:%S}")
