"""
agentdeck - Interactive terminal controller for a team of LLM agents.

This package provides:
- REPL with streaming, interruptible agent turns
- Per-agent provider/model selection persisted in a local store
- Switchable execution runners (in-memory or SQLite-backed sessions)
- Project memory notes, session compaction and summaries
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
