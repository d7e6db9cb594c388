"""
App assembly entry point.

Re-exports the FastAPI `app` from `workhaven.api.main` so `uvicorn app:app`
works from the repository root.
"""

from workhaven.api.main import app  # noqa: F401
