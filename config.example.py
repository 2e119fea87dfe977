# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKBOARD_APP_NAME": "App display name (default: taskboard).",
    "TASKBOARD_LOG_LEVEL": "Console logging level (default: INFO).",
    # Board
    "TASKBOARD_OWNER_ID": "Fixed owner id (default: anonymous id generated once and persisted).",
    "TASKBOARD_TIMER_TICK_SECONDS": "Countdown tick period for tasks in 'doing' (default: 1.0).",
    # Connectors
    "TASKBOARD_CONSOLE_ENABLED": "Enable console REPL (true/false).",
    "TASKBOARD_MATRIX_ENABLED": "Forward notifications to Matrix (true/false).",
    # Matrix
    "TASKBOARD_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "TASKBOARD_MATRIX_USER_ID": "Matrix user ID (bot).",
    "TASKBOARD_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "TASKBOARD_MATRIX_ROOM_ID": "Room that receives overdue / time's-up notifications.",
    # Paths (gitignored)
    "TASKBOARD_DATA_DIR": "Local data directory (default: .local/taskboard).",
    "TASKBOARD_DB_PATH": "SQLite document store path (default: <data_dir>/board.sqlite3).",
    "TASKBOARD_IDENTITY_PATH": "Anonymous identity file (default: <data_dir>/identity.json).",
    "TASKBOARD_MATRIX_STORE_PATH": "Matrix session/E2EE store (default: <data_dir>/matrix_store).",
}
