# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP front-end for the Last.fm tools.
#
# ARCHITECTURAL ROLE:
#   tools/ sits between MCP clients and core/.  mcp_server.py:
#     1. Registers one MCP tool per entry in core/contracts.py
#     2. Keeps the session key between calls (core/ is stateless)
#     3. Turns core exceptions into {"error", "error_type"} values
#     4. Summarises Last.fm replies before they reach the LLM
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT validate, apply defaults or sign (that's core/)
#   - They do NOT know about Google ADK (any MCP client can connect)
# =============================================================================
