# =============================================================================
# agent/scrobbler_agent.py  —  Google ADK Agent Configuration
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Creates the listening assistant: a Google ADK agent whose only
#   capabilities are the Last.fm tools served by tools/mcp_server.py.
#
#   ┌──────────────────────────────┐        ┌──────────────────────────┐
#   │  Google ADK Agent            │ stdio  │  FastMCP Server          │
#   │  prompt + LLM (LiteLlm)      │───────▶│  (tools/mcp_server.py)   │
#   └──────────────────────────────┘  MCP   │  search_* / get_*        │
#                                           │  scrobble / love / tags  │
#                                           └────────────┬─────────────┘
#                                                        ▼
#                                           ┌──────────────────────────┐
#                                           │  core/  →  Last.fm API   │
#                                           └──────────────────────────┘
#
# MODEL:
#   Any LiteLlm model string works.  SCROBBLER_MODEL overrides the default
#   ("openrouter/openai/gpt-4o", which reads OPENROUTER_API_KEY).
#
# MCP CONNECTION:
#   ADK starts the server as a subprocess (`python -m tools.mcp_server`)
#   from the project root, so `core` and `tools` import as packages.  The
#   subprocess inherits this environment, including the Last.fm keys.
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_scrobbler_prompt

DEFAULT_MODEL = "openrouter/openai/gpt-4o"
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def server_parameters() -> StdioServerParameters:
    """How ADK launches the tool server."""
    return StdioServerParameters(
        command=sys.executable,
        args=["-m", "tools.mcp_server"],
        cwd=PROJECT_ROOT,
        env=dict(os.environ),
    )


def create_agent(model: str = None) -> Agent:
    """Create the Last.fm listening assistant.

    Args:
        model: LiteLlm model string.  Falls back to $SCROBBLER_MODEL, then
            to DEFAULT_MODEL.

    Returns:
        A configured Google ADK Agent instance.
    """
    model = model or os.environ.get("SCROBBLER_MODEL") or DEFAULT_MODEL

    mcp_tools = MCPToolset(connection_params=server_parameters())

    return Agent(
        name="scrobbler_assistant",
        model=LiteLlm(model=model),
        instruction=get_scrobbler_prompt(),
        tools=[mcp_tools],
    )
