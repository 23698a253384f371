"""
Settings parsing from the environment.
"""

import pytest

from freightdesk.core.config import Settings


@pytest.mark.parametrize(
    "raw",
    [
        "https://app.example.com, https://admin.example.com",
        '["https://app.example.com", "https://admin.example.com"]',
    ],
)
def test_cors_origins_accept_comma_list_or_json(monkeypatch, raw):
    monkeypatch.setenv("CORS_ORIGINS", raw)
    assert Settings().CORS_ORIGINS == ["https://app.example.com", "https://admin.example.com"]
