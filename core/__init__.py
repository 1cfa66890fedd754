# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL of the request logic for the Last.fm tool server.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP, Google ADK, or any agent
#   framework.  contracts → validator → merger → signature → composer →
#   dispatcher is pure Python with no network access; only transport.py
#   talks to Last.fm, and only when the dispatcher is asked to `call`.
#
# Why?  A wrong signature makes every write fail and a wrong default
# silently changes what Last.fm returns.  Both must be testable without a
# network, an API key, or an MCP client.
# =============================================================================
