"""SQLite database schema for recorded activities."""

ACTIVITY_SCHEMA = """
-- ============================================
-- walktrack Activity Database Schema
-- Version: 1.0.0
-- ============================================

-- Finished activities (one row per saved session)
CREATE TABLE IF NOT EXISTS activities (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'walk',
    distance REAL NOT NULL DEFAULT 0,       -- kilometers
    duration INTEGER NOT NULL DEFAULT 0,    -- seconds
    calories_burned INTEGER NOT NULL DEFAULT 0,
    date TEXT NOT NULL,                     -- YYYY-MM-DD
    created_at TEXT NOT NULL
);

-- Route samples, in acceptance order
CREATE TABLE IF NOT EXISTS route_points (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    activity_id TEXT NOT NULL,
    seq INTEGER NOT NULL,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    captured_at_ms INTEGER NOT NULL,

    FOREIGN KEY (activity_id) REFERENCES activities(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_activities_user_date ON activities(user_id, date);
CREATE INDEX IF NOT EXISTS idx_route_points_activity ON route_points(activity_id, seq);
"""
