"""Seed a demo project for manual testing of `bubbles serve`.

Usage:
    python scripts/seed_demo_project.py [db_path]
"""

import sys
from pathlib import Path

from bubbles.engine import add_triple, create_project, flip_state
from db.migrations import init_db

DB_PATH = Path("~/.bubbles/state.db").expanduser()


def main() -> None:
    db_path = Path(sys.argv[1]) if len(sys.argv) > 1 else DB_PATH
    conn = init_db(db_path)

    project = create_project(conn, "Release")
    print(f"Created project: {project['id']}")

    result = add_triple(conn, project["id"], "design", "build", "ship")
    print(f"Added pairs:     {result['inserted']}")

    flipped = flip_state(conn, project["id"], "design")
    print(f"Flipped design:  {flipped['state']}")

    conn.close()

    print()
    print("Open the graph with:")
    print(f"  bubbles serve, then http://localhost:5466/projects/{project['id']}/graph.svg")


if __name__ == "__main__":
    main()
