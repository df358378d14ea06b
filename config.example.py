# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use .env (local, gitignored); see .env.example.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "ORCH_APP_NAME": "App display name (default: agent-orchestrator).",
    "ORCH_LOG_LEVEL": "Console logging level (default: INFO).",
    "ORCH_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Agent session API
    "ORCH_AGENT_API_KEY": "Agent API key (required; JULES_API_KEY is accepted too).",
    "ORCH_AGENT_BASE_URL": "Agent API base URL (default: https://jules.googleapis.com/v1alpha).",
    # Source hosting
    "ORCH_GITHUB_TOKEN": "GitHub token used to open pull requests (required; GITHUB_TOKEN is accepted too).",
    "ORCH_GITHUB_API_URL": "GitHub API URL (default: https://api.github.com).",
    "ORCH_DEFAULT_REPO": "Repository (owner/name) used when a task is created without one.",
    "ORCH_DEFAULT_BASE_BRANCH": "Base branch for pull requests (default: main).",
    # Reconciliation / HTTP
    "ORCH_POLL_INTERVAL_SECONDS": "Seconds between reconciliation ticks (default: 10).",
    "ORCH_HTTP_TIMEOUT_SECONDS": "Timeout for agent/GitHub HTTP calls (default: 30).",
    # Paths (gitignored)
    "ORCH_DATA_DIR": "Local data directory, also holds orchestrator.log (default: .local/orchestrator).",
    "ORCH_TASKS_DIR": "Task records directory (default: <data_dir>/tasks).",
}
