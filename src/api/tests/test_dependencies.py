"""Unit tests for API dependencies.

Tests focus on the wiring inside api/dependencies.py:
- get_optional_user_repo() returns None without a MongoDB client
- get_user_repo() raises 503 when the repository is unavailable
- get_identity_provider() is None until Google is fully configured
- get_oauth_service() carries settings through to the service
"""

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from fastapi import HTTPException

from api.config import Settings
from api.dependencies import (
    get_identity_provider,
    get_oauth_service,
    get_optional_user_repo,
    get_user_repo,
)
from adapter.external.google_oauth import GoogleOAuthAdapter
from adapter.fake.identity_provider import FakeIdentityProvider
from adapter.mongodb.user_repository import MongoUserRepository


def _settings(**kwargs) -> Settings:
    values = {
        "ENVIRONMENT": "test",
        "JWT_SECRET_KEY": "test-secret-key-0123456789abcdef0123456789",
        "WEB_ORIGIN": "http://localhost:5173",
        "MONGODB_DATABASE": "qrafty_test",
    }
    values.update(kwargs)
    return Settings(**values)


def _request(mongo_client=None):
    return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(mongo_client=mongo_client)))


class TestGetUserRepo(unittest.TestCase):
    """Test cases for the user repository dependencies."""

    def test_returns_none_without_client(self):
        self.assertIsNone(get_optional_user_repo(_request(None), _settings()))

    def test_returns_mongo_repository_when_connected(self):
        mock_client = MagicMock()

        repo = get_optional_user_repo(_request(mock_client), _settings())

        self.assertIsInstance(repo, MongoUserRepository)
        mock_client.__getitem__.assert_called_with("qrafty_test")

    def test_passes_db_to_mongo_repository(self):
        mock_client = MagicMock()
        mock_db = MagicMock()
        mock_client.__getitem__.return_value = mock_db

        with patch('api.dependencies.MongoUserRepository') as mock_repo_class:
            get_optional_user_repo(_request(mock_client), _settings())
            mock_repo_class.assert_called_once_with(mock_db)

    def test_raises_503_when_mongodb_unavailable(self):
        with self.assertRaises(HTTPException) as context:
            get_user_repo(None)

        self.assertEqual(context.exception.status_code, 503)
        self.assertEqual(context.exception.detail, "Database unavailable")

    def test_passes_repository_through(self):
        repo = MagicMock()
        self.assertIs(get_user_repo(repo), repo)


class TestGetIdentityProvider(unittest.TestCase):

    def test_none_when_not_configured(self):
        self.assertIsNone(get_identity_provider(_settings()))
        self.assertIsNone(get_identity_provider(_settings(
            GOOGLE_CLIENT_ID="id", GOOGLE_CLIENT_SECRET="secret",
        )))

    def test_google_adapter_when_configured(self):
        provider = get_identity_provider(_settings(
            GOOGLE_CLIENT_ID="id",
            GOOGLE_CLIENT_SECRET="secret",
            GOOGLE_REDIRECT_URL="http://localhost:4000/auth/google/callback",
        ))
        self.assertIsInstance(provider, GoogleOAuthAdapter)


class TestGetOAuthService(unittest.TestCase):

    def test_service_uses_settings(self):
        settings = _settings(
            ENVIRONMENT="production",
            GOOGLE_REDIRECT_URL="https://api.example.com/auth/google/callback",
        )

        service = get_oauth_service(settings, FakeIdentityProvider())

        self.assertTrue(service.configured)
        self.assertTrue(service.production)
        self.assertEqual(service.web_origin, "http://localhost:5173")
        self.assertEqual(service.redirect_url, "https://api.example.com/auth/google/callback")
        self.assertEqual(service.allowed_origins, ["http://localhost:5173"])

    def test_any_origin_allowed_outside_production(self):
        self.assertIsNone(get_oauth_service(_settings(), FakeIdentityProvider()).allowed_origins)

    def test_service_without_provider_is_unconfigured(self):
        self.assertFalse(get_oauth_service(_settings(), None).configured)


if __name__ == '__main__':
    unittest.main()
