"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from pagerelay.api import app

    uvicorn pagerelay.api:app --reload
"""

from pagerelay.api.app import app

__all__ = ["app"]
