# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real keys. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKDECK_APP_NAME": "App display name (default: taskdeck).",
    "TASKDECK_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    "TASKDECK_DATA_DIR": "Local data directory, holds taskdeck.log (default: .local/taskdeck).",
    # Connectors
    "TASKDECK_CONSOLE_ENABLED": "Run the console form/list (true) or only watch the change feed (false).",
    # Supabase
    "TASKDECK_SUPABASE_URL": "Project URL (fallbacks: SUPABASE_URL, VITE_SUPABASE_URL).",
    "TASKDECK_SUPABASE_KEY": "Anon key (fallbacks: SUPABASE_KEY, VITE_SUPABASE_KEY).",
    "TASKDECK_OFFLINE": "Force the in-memory backend (default: false; forced when URL/key are missing).",
    # Remote names
    "TASKDECK_TASKS_TABLE": "Table with id/title/description/image_url/video_url (default: tasks).",
    "TASKDECK_DB_SCHEMA": "Postgres schema of the table (default: public).",
    "TASKDECK_STORAGE_BUCKET": "Public storage bucket for attachments (default: notes-images).",
    "TASKDECK_FEED_CHANNEL": "Realtime channel name (default: tasks-changes).",
}
