"""Enhanced Context MCP server.

Serves SDLC contexts, templates, agent profiles and engineering standards to
AI coding assistants, selected from a task description or structured query.
"""

__version__ = "2.0.0"
