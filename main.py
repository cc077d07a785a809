"""
Main Application Entry Point

FastAPI application serving word-level message translations.
Run with: uvicorn main:app
"""

from core.app_factory import create_app

app = create_app()
