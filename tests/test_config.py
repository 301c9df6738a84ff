"""Tests for configuration helpers."""

import pytest

from soundshelf.config import CORS_ALLOW_HEADERS, load_service_url


class TestLoadServiceUrl:

    def test_strips_trailing_slash(self, monkeypatch):
        monkeypatch.setenv("SOUNDSHELF_SERVICE_URL", " https://api.example.com/v1/ ")
        assert load_service_url() == "https://api.example.com/v1"

    def test_missing_raises(self, monkeypatch):
        monkeypatch.setenv("SOUNDSHELF_SERVICE_URL", "")
        with pytest.raises(ValueError, match="SOUNDSHELF_SERVICE_URL"):
            load_service_url()


def test_cors_headers_cover_web_player():
    assert set(CORS_ALLOW_HEADERS) == {"authorization", "x-client-info", "apikey", "content-type"}
