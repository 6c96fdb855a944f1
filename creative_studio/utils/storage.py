"""
Project Storage
===============

SQLite-backed store of saved projects. Projects are written and read as
whole records; there are no partial updates.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional, List, Union

from ..workflow.models import Project

logger = logging.getLogger(__name__)


class ProjectStore:
    """
    Persists ``Project`` snapshots.

    Each project is one row: a few indexed columns for listing plus the
    full serialized record.
    """

    def __init__(self, db_path: Union[str, Path] = "~/.creative-studio/projects.db"):
        """
        Initialize the project store.

        Args:
            db_path: Path to SQLite database
        """
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the SQLite database."""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS projects (
                id TEXT PRIMARY KEY,
                timestamp INTEGER,
                mode TEXT,
                title TEXT,
                data TEXT
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_projects_timestamp
            ON projects(timestamp)
        """)

        conn.commit()
        conn.close()

        logger.debug(f"Initialized project store at {self.db_path}")

    def save(self, project: Project) -> None:
        """Insert or replace a whole project record."""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("""
            INSERT OR REPLACE INTO projects (id, timestamp, mode, title, data)
            VALUES (?, ?, ?, ?, ?)
        """, (
            project.id,
            project.timestamp,
            project.mode.value,
            project.title,
            json.dumps(project.to_dict()),
        ))

        conn.commit()
        conn.close()
        logger.info(f"Saved project {project.id}")

    def get(self, project_id: str) -> Optional[Project]:
        """Get a project by ID."""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("SELECT data FROM projects WHERE id = ?", (project_id,))
        row = cursor.fetchone()
        conn.close()

        if row:
            return Project.from_dict(json.loads(row[0]))
        return None

    def list(self) -> List[Project]:
        """All projects, newest first."""
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("SELECT data FROM projects ORDER BY timestamp DESC")
        rows = cursor.fetchall()
        conn.close()

        return [Project.from_dict(json.loads(row[0])) for row in rows]

    def delete(self, project_id: str) -> None:
        conn = sqlite3.connect(self.db_path)
        cursor = conn.cursor()

        cursor.execute("DELETE FROM projects WHERE id = ?", (project_id,))

        conn.commit()
        conn.close()
        logger.info(f"Deleted project {project_id}")
