# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKTRACK_APP_NAME": "App display name (default: tasktrack).",
    "TASKTRACK_LOG_LEVEL": "Console logging level (default: WARNING).",
    "TASKTRACK_LOG_TO_FILE": "Write full debug logs to <data_dir>/tasktrack.log (default: true).",
    # Paths
    "TASKTRACK_DATA_DIR": "Per-user data directory (default: ~/.tasktrack).",
    "TASKTRACK_TASKS_PATH": "Task document path (default: <data_dir>/tasks.json).",
}
