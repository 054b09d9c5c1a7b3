"""Database table definitions for bubbles.

Uses raw SQL strings. ``left`` and ``right`` are SQL keywords, so they are
always double-quoted.
"""

TABLES = {
    "projects": """
        CREATE TABLE IF NOT EXISTS projects (
            id    INTEGER PRIMARY KEY AUTOINCREMENT,
            name  TEXT NOT NULL
        )
    """,
    "pairs": """
        CREATE TABLE IF NOT EXISTS pairs (
            project  INTEGER NOT NULL REFERENCES projects(id),
            "left"   TEXT NOT NULL,
            "right"  TEXT NOT NULL
        )
    """,
    "bubbles": """
        CREATE TABLE IF NOT EXISTS bubbles (
            project  INTEGER NOT NULL REFERENCES projects(id),
            bubble   TEXT NOT NULL,
            state    TEXT NOT NULL
        )
    """,
}

# Ordered list for creation: respects foreign key dependencies
TABLE_CREATION_ORDER = [
    "projects",
    "pairs",
    "bubbles",
]

INDEXES = {
    "pairs_unique": """
        CREATE UNIQUE INDEX IF NOT EXISTS pairs_unique
            ON pairs (project, "left", "right")
    """,
    "bubbles_project_bubble": """
        CREATE UNIQUE INDEX IF NOT EXISTS bubbles_project_bubble
            ON bubbles (project, bubble)
    """,
}
