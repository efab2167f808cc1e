"""
Pytest configuration and shared fixtures for the test suite.
"""

import pytest
from dataclasses import replace

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from combatlog.config.settings import ParserSettings

from tests.samples import (
    EMOTE_BODY,
    SPELL_CAST_SUCCESS_BODY,
    SPELL_DAMAGE_BODY,
    SPELL_HEAL_BODY,
    make_line,
)


@pytest.fixture
def settings():
    """Parser settings independent of the environment."""
    return ParserSettings()


@pytest.fixture
def nil_false_settings(settings):
    """Settings that coerce nil flags to False."""
    return replace(settings, nil_is_false=True)


@pytest.fixture
def sample_log_lines():
    """Sample combat log lines for testing."""
    return [
        make_line(EMOTE_BODY),
        make_line(SPELL_CAST_SUCCESS_BODY),
        make_line(SPELL_DAMAGE_BODY),
        make_line(SPELL_HEAL_BODY),
        make_line('ZONE_CHANGE,2649,"Hallowfall",23'),
        make_line("UNKNOWN_EVENT,1,2,3"),
    ]


@pytest.fixture
def sample_log_file(tmp_path, sample_log_lines):
    """Write the sample lines to a combat log file."""
    path = tmp_path / "WoWCombatLog-080323_201542.txt"
    path.write_text("\n".join(sample_log_lines) + "\n", encoding="utf-8")
    return path


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as an integration test")
