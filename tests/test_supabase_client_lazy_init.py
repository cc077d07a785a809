"""Tests for lazy Supabase client initialization behavior."""

from unittest.mock import MagicMock, patch

import supabase_client
from supabase_client import get_supabase, reset_supabase_for_tests


def test_client_created_on_first_access(monkeypatch) -> None:
    """create_client should run once, on first access, and be reused."""
    reset_supabase_for_tests()
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "demo-key")

    with patch("supabase_client.create_client", return_value=MagicMock()) as mock_create:
        assert mock_create.call_count == 0

        client = get_supabase()
        assert client is not None
        assert get_supabase() is client
        mock_create.assert_called_once_with("https://demo.supabase.co", "demo-key")

    reset_supabase_for_tests()


def test_missing_credentials_disable_client(monkeypatch) -> None:
    reset_supabase_for_tests()
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)

    with patch("supabase_client.create_client") as mock_create:
        assert get_supabase() is None
        assert supabase_client.supabase is None
        mock_create.assert_not_called()

    reset_supabase_for_tests()


def test_creation_failure_leaves_client_unset(monkeypatch) -> None:
    reset_supabase_for_tests()
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "bad-key")

    with patch("supabase_client.create_client", side_effect=ValueError("Invalid API key")):
        assert get_supabase() is None

    reset_supabase_for_tests()
