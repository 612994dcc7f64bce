"""
Task Tracker backend package.

Exposes the FastAPI app instance for convenience imports
(``from task_tracker import app``).
"""

from .main import app  # noqa: F401
