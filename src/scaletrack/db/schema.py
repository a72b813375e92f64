"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- Registered accounts
CREATE TABLE IF NOT EXISTS users (
    user_id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Raw measurements; several per day are allowed and averaged on read
CREATE TABLE IF NOT EXISTS weight_entries (
    entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    value REAL NOT NULL,
    notes TEXT,
    source TEXT NOT NULL DEFAULT 'manual' CHECK(source IN ('manual', 'image', 'import')),
    measured_at TIMESTAMP NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_weight_entries_user_date ON weight_entries(user_id, measured_at);

-- Goal parameters for the trend lines (one row per user)
CREATE TABLE IF NOT EXISTS user_settings (
    user_id INTEGER PRIMARY KEY,
    weight_goal REAL,
    loss_rate REAL NOT NULL DEFAULT 0.0055,
    buffer_value REAL NOT NULL DEFAULT 0.0075,
    carb_fat_ratio REAL NOT NULL DEFAULT 0.6,
    openai_api_key TEXT,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
);
"""


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
