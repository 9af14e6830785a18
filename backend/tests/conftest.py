import pytest
import sys
from pathlib import Path

# Add backend directory to path so imports work
backend_path = Path(__file__).parent.parent
sys.path.append(str(backend_path))

from analyzer import CopyrightAnalyzer
from models import SubmissionInput
from rules_db import RuleDatabase


@pytest.fixture
def rules_db(tmp_path):
    """Built-in rules only (empty directory, no rules.json)"""
    return RuleDatabase(tmp_path)


@pytest.fixture
def analyzer(rules_db):
    return CopyrightAnalyzer(rules_db, delay_seconds=0)


@pytest.fixture
def safe_submission():
    return SubmissionInput(title="My Vacation")


@pytest.fixture
def risky_submission():
    return SubmissionInput(
        title="Official Trailer Reaction",
        uses_music=True,
        music_source="commercial",
        uses_footage=True,
        footage_source="stock-footage",
    )


@pytest.fixture
def sample_request_body():
    return {
        "title": "Official Trailer Reaction",
        "description": "Reacting to the new trailer",
        "tags": "reaction, trailer",
        "uses_music": True,
        "music_source": "commercial",
        "uses_footage": True,
        "footage_source": "stock-footage",
        "has_text": False,
        "text_source": "",
    }
