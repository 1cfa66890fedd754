# =============================================================================
# main.py  —  Entry Point for the Last.fm Listening Assistant
# =============================================================================
#
# HOW TO RUN:
#   python main.py
#
#   Needs LASTFM_API_KEY, LASTFM_SECRET_KEY and an LLM key (by default
#   OPENROUTER_API_KEY) in the environment or in a .env file.
#
# WHAT HAPPENS:
#   1. Creates the ADK agent (agent/scrobbler_agent.py), which starts the
#      MCP tool server as a subprocess
#   2. Opens an in-memory session
#   3. Reads questions from the terminal and streams the agent's replies,
#      printing each tool call as it happens
#
# To serve the tools to a different MCP client instead, run:
#   python -m tools.mcp_server
# =============================================================================

import asyncio

from dotenv import load_dotenv

# Must run before the agent is created: LiteLlm and the MCP subprocess
# both read their keys from the environment.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.scrobbler_agent import create_agent
from core import contracts

APP_NAME = "scrobbler_context"
USER_ID = "listener"

# Tool calls that change the user's Last.fm profile are flagged in the
# console so every scrobble / love / tag is visible as it happens.
_WRITE_TOOLS = frozenset(contracts.mutating_tools())


async def _stream_reply(runner: Runner, session_id: str, text: str) -> str:
    """Send one user message and return the agent's final text.

    The runner yields Events: text chunks, tool calls and tool results.
    Tool calls are printed as they arrive; the LAST text part is the
    answer.
    """
    message = types.Content(role="user", parts=[types.Part(text=text)])
    final_response = ""

    async for event in runner.run_async(
        user_id=USER_ID,
        session_id=session_id,
        new_message=message,
    ):
        if not (event.content and event.content.parts):
            continue
        for part in event.content.parts:
            if getattr(part, "text", None):
                final_response = part.text
            call = getattr(part, "function_call", None)
            if call:
                marker = "✍️ " if call.name in _WRITE_TOOLS else "🔧"
                print(f"  {marker} Calling tool: {call.name}")

    return final_response


async def run_agent():
    """Run the listening assistant interactively."""

    # =========================================================================
    # Step 1: Create the agent
    # =========================================================================
    # create_agent() wires the LLM, the system prompt and the MCP toolset.
    # The tool server subprocess starts when the first tool list is needed.
    # =========================================================================
    print("=" * 70)
    print("  LAST.FM LISTENING ASSISTANT")
    print("  Powered by Google ADK + LiteLlm + FastMCP")
    print("=" * 70)
    print("\n🔧 Initializing agent...")
    agent = create_agent()

    # =========================================================================
    # Step 2: Runner and session
    # =========================================================================
    # The ADK session holds the conversation only.  The Last.fm session key
    # lives in the tool server, so logging in once covers the whole chat.
    # =========================================================================
    session_service = InMemorySessionService()
    runner = Runner(agent=agent, app_name=APP_NAME, session_service=session_service)
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)

    print("✅ Agent initialized and ready!\n")
    print("💬 Ask about artists, albums, your listening history, or say")
    print("   what you just played.  (Type 'quit' to exit)\n")
    print("-" * 70)

    # =========================================================================
    # Step 3: Conversation loop
    # =========================================================================
    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break
        if not user_input:
            continue

        print("\n🤖 Agent is thinking...\n")
        print("-" * 70)
        final_response = await _stream_reply(runner, session.id, user_input)
        print("-" * 70)

        if final_response:
            print(f"\n🤖 Agent:\n\n{final_response}")
        else:
            print("\n⚠️  No response generated. The agent may have encountered an error.")
        print("\n" + "=" * 70)


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    asyncio.run(run_agent())
