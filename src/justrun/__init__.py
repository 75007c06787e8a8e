"""Per-project shell task runner."""

from justrun.tasks.models import create_tasks

__version__ = "0.1.0"

__all__ = ["__version__", "create_tasks"]
