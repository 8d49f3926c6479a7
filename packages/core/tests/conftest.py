"""Shared fixtures for faktura-core tests."""

import os

import pytest


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Run each test without FAKTURA_* variables or a local .env file."""
    for name in list(os.environ):
        if name.startswith("FAKTURA_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
