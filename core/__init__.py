"""Shared infrastructure: errors, LLM factory, provider registry, auth, app factory."""
