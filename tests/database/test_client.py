"""Tests for src/database/client.py."""

from unittest.mock import patch

import pytest

from src.config.settings import Settings
from src.database import client as client_module
from src.database.client import get_supabase_client


@pytest.fixture(autouse=True)
def clear_cache():
    client_module._client_for.cache_clear()
    yield
    client_module._client_for.cache_clear()


class TestGetSupabaseClient:
    @patch("src.database.client.create_client")
    def test_uses_explicit_settings(self, mock_create):
        settings = Settings(
            _env_file=None, supabase_url="https://explicit.supabase.co", supabase_anon_key="k1"
        )
        assert get_supabase_client(settings) is mock_create.return_value
        mock_create.assert_called_once_with("https://explicit.supabase.co", "k1")

    @patch("src.database.client.create_client")
    def test_cached_per_credentials(self, mock_create):
        first = Settings(_env_file=None, supabase_url="https://a.supabase.co", supabase_anon_key="k")
        second = Settings(_env_file=None, supabase_url="https://b.supabase.co", supabase_anon_key="k")

        get_supabase_client(first)
        get_supabase_client(first)
        get_supabase_client(second)

        assert mock_create.call_count == 2

    def test_unconfigured_raises(self):
        with pytest.raises(RuntimeError, match="DUET_SUPABASE_URL"):
            get_supabase_client(Settings(_env_file=None, supabase_url=None, supabase_anon_key=None))
