"""Streamlit UI for mcpsim.

Five tabs:
1. Tools: pick a tool, fill in params, execute it through the dispatcher
2. Providers: run context extraction per provider or for all of them
3. History: the request ledger
4. Search: search cached context, or fetch one entry by key
5. Integrations: PR bot records, plus a box to replay a webhook payload

Run with:
    streamlit run mcpsim/ui/app.py
"""

from __future__ import annotations

import asyncio
import json

import streamlit as st

from mcpsim.config import Config
from mcpsim.github.client import PostedComment
from mcpsim.services import Services, build_services
from mcpsim.ui.components import (
    category_icon,
    parse_params_json,
    params_template,
    provider_icon,
    render_integration_card,
    render_request_row,
    truncate,
)


@st.cache_resource
def get_services() -> Services:
    return build_services(Config.load())


def main() -> None:
    st.set_page_config(page_title="mcpsim", page_icon="\U0001f9ea", layout="wide")
    st.title("mcpsim")
    st.caption("Simulated Model Context Protocol tools, context providers and PR bot")

    services = get_services()
    stats = services.repo.get_stats()

    col1, col2, col3, col4, col5 = st.columns(5)
    col1.metric("Tools", stats["total_tools"])
    col2.metric("Providers", stats["total_providers"])
    col3.metric("Requests", stats["total_requests"])
    col4.metric("Cache Items", stats["cache_items"])
    col5.metric("PR Integrations", stats["integrations"])

    tools_tab, providers_tab, history_tab, search_tab, integrations_tab = st.tabs(
        ["Tools", "Providers", "History", "Search", "Integrations"]
    )
    with tools_tab:
        render_tools_tab(services)
    with providers_tab:
        render_providers_tab(services)
    with history_tab:
        render_history_tab(services)
    with search_tab:
        render_search_tab(services)
    with integrations_tab:
        render_integrations_tab(services)


def render_tools_tab(services: Services) -> None:
    st.header("Execute a tool")

    tools = services.repo.get_tools()
    if not tools:
        st.info("No tools registered. Set MCPSIM_SEED=true to load the sample tools.")
        return

    tool = st.selectbox(
        "Tool",
        tools,
        format_func=lambda t: f"{category_icon(t.category)} {t.name}" + ("" if t.enabled else " (disabled)"),
    )
    st.caption(tool.description)

    params_text = st.text_area(
        "Params (JSON)",
        value=params_template(tool.schema),
        height=160,
        key=f"params_{tool.id}",
    )

    if st.button("Execute", type="primary"):
        try:
            params = parse_params_json(params_text)
            with st.spinner(f"Running {tool.name}..."):
                result = asyncio.run(services.dispatcher.execute(tool.id, params))
        except ValueError as e:
            st.error(str(e))
            return

        if result.success:
            st.success(f"Completed in {result.execution_time}ms")
            st.json(result.data)
        else:
            st.error(result.error)


def render_providers_tab(services: Services) -> None:
    st.header("Context providers")

    providers = services.repo.get_providers()
    if not providers:
        st.info("No context providers configured.")
        return

    if st.button("Extract all"):
        with st.spinner("Extracting from every enabled provider..."):
            results = asyncio.run(services.extractor.extract_all_contexts())
        st.success(f"Extracted {len(results)} context item(s)")

    for p in providers:
        with st.container(border=True):
            col1, col2 = st.columns([4, 1])
            with col1:
                st.markdown(f"{provider_icon(p.type)} **{p.name}** `{p.type}`")
                if p.config:
                    st.caption(truncate(json.dumps(p.config)))
            with col2:
                if st.button("Extract", key=f"extract_{p.id}", disabled=not p.enabled):
                    try:
                        results = asyncio.run(services.extractor.extract_context(p.id))
                    except (LookupError, ValueError) as e:
                        st.error(str(e))
                    else:
                        st.success(f"{len(results)} item(s)")

            cached = services.repo.get_cache_items(provider_id=p.id)
            if cached:
                st.caption("Cached: " + ", ".join(f"`{c.key}`" for c in cached))


def render_history_tab(services: Services) -> None:
    st.header("Request history")

    tools = {t.id: t.name for t in services.repo.get_tools()}
    col1, col2 = st.columns(2)
    with col1:
        tool_filter = st.selectbox("Tool", ["All"] + list(tools.values()), key="history_tool")
    with col2:
        limit = st.slider("Entries", min_value=10, max_value=200, value=50, key="history_limit")

    tool_id = None
    if tool_filter != "All":
        tool_id = next(i for i, name in tools.items() if name == tool_filter)

    requests = services.repo.get_requests(tool_id=tool_id, limit=limit)
    if not requests:
        st.info("No tool requests recorded yet.")
        return

    for r in requests:
        render_request_row(r, tools.get(r.tool_id, f"tool {r.tool_id}"))


def render_search_tab(services: Services) -> None:
    st.header("Search cached context")

    query = st.text_input("Search", placeholder="postgresql")
    if query:
        results = asyncio.run(services.extractor.search_context(query))
        st.caption(f"{len(results)} match(es)")
        for r in results:
            with st.expander(f"{r.key} (provider {r.provider_id})"):
                st.json(r.value)
                st.caption(f"Size: {r.metadata.get('size', 0)} bytes | Tags: {', '.join(r.metadata.get('tags', []))}")

    st.divider()
    key = st.text_input("Get by key", placeholder="database:schema")
    if key:
        item = asyncio.run(services.extractor.get_cached_context(key))
        if item is None:
            st.warning(f"No fresh cache entry for '{key}'.")
        else:
            st.json(item.value)
            st.caption(f"Expires: {item.expires_at:%Y-%m-%d %H:%M:%S}")


def replay_webhook(services: Services, event: str, payload_text: str) -> list[PostedComment]:
    """Feed a raw JSON payload to the bot and return only the comments it posted."""
    payload = json.loads(payload_text)
    posted_before = len(services.github.comments)
    asyncio.run(services.bot.handle_webhook(event, payload))
    return services.github.comments[posted_before:]


def render_integrations_tab(services: Services) -> None:
    st.header("PR integrations")

    with st.expander("Replay a webhook"):
        event = st.selectbox("Event", ["pull_request", "push", "issue_comment"])
        payload_text = st.text_area("Payload (JSON)", height=200)
        if st.button("Send"):
            try:
                new_comments = replay_webhook(services, event, payload_text)
            except Exception as e:
                st.error(f"Webhook processing failed: {e}")
            else:
                st.success("Webhook processed")
                if not new_comments:
                    st.caption("No comment posted for this event.")
                for comment in new_comments:
                    st.markdown(comment.body)

    integrations = services.repo.get_integrations()
    if not integrations:
        st.info("No PR integrations recorded yet.")
        return
    for i in reversed(integrations):
        render_integration_card(i)


if __name__ == "__main__":
    main()
