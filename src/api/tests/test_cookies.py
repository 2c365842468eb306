"""Unit tests for signed OAuth transaction cookies."""

import unittest
from datetime import datetime, timedelta, timezone
from http.cookies import SimpleCookie
from types import SimpleNamespace

from fastapi import Response
from jose import jwt

from api.config import Settings
from api.cookies import (
    OAUTH_COOKIES,
    OAUTH_NEXT_COOKIE,
    OAUTH_ORIGIN_COOKIE,
    OAUTH_STATE_COOKIE,
    TRANSACTION_ALGORITHM,
    read_oauth_cookies,
    set_oauth_cookies,
    sign_transaction_value,
    verify_transaction_value,
)
from domain.model.oauth import OAuthTransaction

SECRET = "test-secret-key-0123456789abcdef0123456789"


def _settings(**kwargs) -> Settings:
    values = {"ENVIRONMENT": "test", "JWT_SECRET_KEY": SECRET}
    values.update(kwargs)
    return Settings(**values)


def _transaction(state="state-abc", **kwargs) -> OAuthTransaction:
    values = {
        "state": state,
        "origin": "http://localhost:5173",
        "redirect_url": "http://localhost:4000/auth/google/callback",
        "next_path": "/app/%E6%97%A5",
    }
    values.update(kwargs)
    return OAuthTransaction(**values)


def _cookies_set_by(response: Response) -> dict[str, str]:
    jar = SimpleCookie()
    for header in response.headers.getlist("set-cookie"):
        jar.load(header)
    return {name: morsel.value for name, morsel in jar.items()}


def _request(cookies: dict):
    return SimpleNamespace(cookies=cookies)


class TestTransactionValueSigning(unittest.TestCase):

    def setUp(self):
        self.settings = _settings()

    def test_roundtrip(self):
        token = sign_transaction_value(self.settings, OAUTH_ORIGIN_COOKIE, "http://localhost:5173", "s")

        claims = verify_transaction_value(self.settings, OAUTH_ORIGIN_COOKIE, token)

        self.assertEqual(claims["value"], "http://localhost:5173")
        self.assertEqual(claims["state"], "s")

    def test_token_is_ascii(self):
        token = sign_transaction_value(self.settings, OAUTH_NEXT_COOKIE, "/app/日本", "s")
        self.assertTrue(token.isascii())

    def test_rejects_other_cookie_name(self):
        token = sign_transaction_value(self.settings, OAUTH_ORIGIN_COOKIE, "http://localhost:5173", "s")
        self.assertIsNone(verify_transaction_value(self.settings, OAUTH_NEXT_COOKIE, token))

    def test_rejects_other_key(self):
        token = sign_transaction_value(self.settings, OAUTH_STATE_COOKIE, "s", "s")
        other = _settings(JWT_SECRET_KEY="another-secret-key-0123456789abcdef")
        self.assertIsNone(verify_transaction_value(other, OAUTH_STATE_COOKIE, token))

    def test_rejects_expired(self):
        token = jwt.encode(
            {
                "typ": "oauth_tx",
                "cookie": OAUTH_STATE_COOKIE,
                "value": "s",
                "state": "s",
                "exp": datetime.now(timezone.utc) - timedelta(seconds=1),
            },
            SECRET,
            algorithm=TRANSACTION_ALGORITHM,
        )
        self.assertIsNone(verify_transaction_value(self.settings, OAUTH_STATE_COOKIE, token))

    def test_rejects_session_token(self):
        token = jwt.encode(
            {"sub": "user-1", "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            SECRET,
            algorithm=TRANSACTION_ALGORITHM,
        )
        self.assertIsNone(verify_transaction_value(self.settings, OAUTH_STATE_COOKIE, token))

    def test_rejects_garbage(self):
        for token in (None, "", "plain-text", "a.b.c"):
            with self.subTest(token=token):
                self.assertIsNone(verify_transaction_value(self.settings, OAUTH_STATE_COOKIE, token))


class TestReadOAuthCookies(unittest.TestCase):

    def setUp(self):
        self.settings = _settings()
        response = Response()
        set_oauth_cookies(response, self.settings, _transaction())
        self.cookies = _cookies_set_by(response)

    def test_set_writes_all_four(self):
        self.assertEqual(set(self.cookies), set(OAUTH_COOKIES))
        self.assertNotIn("state-abc", self.cookies.values())

    def test_read_returns_transaction(self):
        values = read_oauth_cookies(_request(self.cookies), self.settings)

        self.assertEqual(values, {
            "expected_state": "state-abc",
            "stored_origin": "http://localhost:5173",
            "stored_redirect_url": "http://localhost:4000/auth/google/callback",
            "stored_next": "/app/%E6%97%A5",
        })

    def test_missing_optional_cookie_is_none(self):
        del self.cookies[OAUTH_NEXT_COOKIE]

        values = read_oauth_cookies(_request(self.cookies), self.settings)

        self.assertEqual(values["expected_state"], "state-abc")
        self.assertIsNone(values["stored_next"])

    def test_no_state_cookie(self):
        del self.cookies[OAUTH_STATE_COOKIE]

        values = read_oauth_cookies(_request(self.cookies), self.settings)

        self.assertTrue(all(v is None for v in values.values()))

    def test_tampered_cookie_voids_everything(self):
        self.cookies[OAUTH_ORIGIN_COOKIE] = "https://evil.example"

        values = read_oauth_cookies(_request(self.cookies), self.settings)

        self.assertTrue(all(v is None for v in values.values()))

    def test_cookie_from_other_transaction_voids_everything(self):
        response = Response()
        set_oauth_cookies(response, self.settings, _transaction(state="other-state", origin="https://evil.example"))
        self.cookies[OAUTH_ORIGIN_COOKIE] = _cookies_set_by(response)[OAUTH_ORIGIN_COOKIE]

        values = read_oauth_cookies(_request(self.cookies), self.settings)

        self.assertIsNone(values["expected_state"])
        self.assertIsNone(values["stored_origin"])


if __name__ == '__main__':
    unittest.main()
