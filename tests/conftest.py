"""Pytest configuration and shared fixtures."""

import os

from hypothesis import settings

# Tests must not pick up settings from the developer's shell.
for _name in list(os.environ):
    if _name.startswith("SYNC_CHECK_"):
        del os.environ[_name]

# Create a profile named "no_deadline" with deadline disabled.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
