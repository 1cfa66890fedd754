# =============================================================================
# agent/__init__.py
# =============================================================================
# This package contains the Google ADK listening assistant.
#
# ARCHITECTURAL ROLE:
#   The agent/ layer decides WHICH Last.fm tools to call and explains the
#   results.  It never builds requests or touches credentials itself:
#   everything goes through the MCP tool server in tools/, which in turn
#   delegates to core/.
#
#   agent/  → conversation and judgement (LLM via LiteLlm)
#   tools/  → MCP wrappers and session state
#   core/   → contracts, validation, defaults, signing, transport
# =============================================================================
