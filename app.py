"""
App assembly entry point.

Re-exports the FastAPI `app` from `projecthub.api.main` so the service can be
started with ``uvicorn app:app``.
"""

from projecthub.api.main import app  # noqa: F401
