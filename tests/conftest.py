"""Test environment: in-memory SQLite and fixed API keys, set before any pickedge import."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PICKEDGE_ADMIN_KEYS"] = "test-admin-key"
os.environ["PICKEDGE_READER_KEYS"] = "test-reader-key"
