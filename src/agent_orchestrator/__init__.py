"""Orchestrator for human-gated coding-agent tasks: from task creation to pull request."""

__version__ = "0.1.0"
