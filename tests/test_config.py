"""Unit tests for core/config.py Settings validation.

Covers:
- Defaults carry the three deployment origins and the five methods
- Environment overrides, including JSON list values
- Rejected configurations: bad bcrypt cost, empty origins, '*' with credentials
"""

import pytest
from pydantic import ValidationError

from core.config import DEFAULT_ALLOWED_ORIGINS, Settings


def test_defaults():
    s = Settings(_env_file=None, bcrypt_strength=10)
    assert s.cors_allowed_origins == DEFAULT_ALLOWED_ORIGINS
    assert s.cors_allowed_methods == ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    assert s.cors_allowed_headers == ["*"]
    assert s.cors_allow_credentials is True
    assert s.csrf_enabled is False
    assert s.bcrypt_strength == 10


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", '["https://staging.example.com"]')
    monkeypatch.setenv("BCRYPT_STRENGTH", "12")
    monkeypatch.setenv("CSRF_ENABLED", "true")
    s = Settings(_env_file=None)
    assert s.cors_allowed_origins == ["https://staging.example.com"]
    assert s.bcrypt_strength == 12
    assert s.csrf_enabled is True


def test_methods_are_upper_cased():
    s = Settings(_env_file=None, cors_allowed_methods=["get", "post"])
    assert s.cors_allowed_methods == ["GET", "POST"]


@pytest.mark.parametrize("strength", [3, 32])
def test_bcrypt_strength_out_of_range(strength):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, bcrypt_strength=strength)


def test_empty_origins_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, cors_allowed_origins=[])


def test_wildcard_with_credentials_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, cors_allowed_origins=["*"])


def test_wildcard_without_credentials_allowed():
    s = Settings(_env_file=None, cors_allowed_origins=["*"], cors_allow_credentials=False)
    assert s.cors_allowed_origins == ["*"]
