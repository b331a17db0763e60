from __future__ import annotations

import sys
from pathlib import Path

import pytest


_REPO_ROOT = Path(__file__).resolve().parents[1]
_BACKEND = _REPO_ROOT / "backend"
if _BACKEND.exists():
    sys.path.insert(0, str(_BACKEND))

from models import FormConfig  # noqa: E402


def make_config(*steps: dict) -> FormConfig:
    return FormConfig.model_validate({"theme": {"colors": {"primary": "#0E565B"}}, "steps": list(steps)})


@pytest.fixture
def quote_config() -> FormConfig:
    """tiles -> documentUpload -> documentInfo, the translation quote flow"""
    return make_config(
        {"type": "tiles", "title": "Use case", "options": [{"id": "X", "title": "X"}]},
        {"type": "documentUpload", "title": "Upload", "validation": {"required": True}},
        {"type": "documentInfo", "title": "Quote"},
    )
