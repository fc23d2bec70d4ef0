"""Root conftest — shared test configuration."""

import os

# Ensure tests never pick up real secrets or a production environment
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CHECKOUT_TOKEN_SECRET", "test-checkout-token-secret")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")
