"""Test environment defaults.

api.main reads settings at import time, so these must be in place
before any test module imports the app.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("WEB_ORIGIN", "http://localhost:5173")
os.environ.setdefault("LOG_LEVEL", "WARNING")
# Tests opt in to Google sign-in through dependency overrides
os.environ.setdefault("GOOGLE_CLIENT_ID", "")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "")
os.environ.setdefault("GOOGLE_REDIRECT_URL", "")
