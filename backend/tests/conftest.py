import json
import pytest
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add backend directory to path so imports work
backend_path = Path(__file__).parent.parent
sys.path.append(str(backend_path))

from config import Settings


@pytest.fixture
def settings():
    return Settings(provider="gemini", api_key="test-key")


@pytest.fixture
def sample_report_data():
    return {
        "title": "Parasite",
        "overallSummary": "A sharp satire about class inequality with graphic violence in its final act.",
        "overallConcernLevel": 62,
        "thematicAnalysis": [
            {
                "theme": "Language and Communication",
                "analysis": "Frequent profanity, mostly in moments of tension.",
                "concernLevel": 40,
            },
            {
                "theme": "Behavioral Modeling and Attitudes",
                "analysis": "Deception is rewarded for most of the film before its consequences arrive.",
                "concernLevel": 70,
            },
        ],
        "positiveAspectsSummary": "Invites reflection on empathy and social mobility.",
        "concludingRemarks": "Valuable for adult audiences; not suitable for children.",
    }


@pytest.fixture
def sample_report_json(sample_report_data):
    return json.dumps(sample_report_data)


@pytest.fixture
def sample_translation_data():
    return {
        "overallSummary": "Una sátira aguda sobre la desigualdad de clases.",
        "positiveAspectsSummary": "Invita a reflexionar sobre la empatía.",
        "thematicAnalysis": [
            {"analysis": "Lenguaje soez frecuente."},
            {"analysis": "El engaño se recompensa durante gran parte de la película."},
        ],
        "concludingRemarks": "Valiosa para adultos; no apta para niños.",
    }


@pytest.fixture
def fake_llm(sample_report_json):
    """LLM client double: every call is an AsyncMock the test can reprogram."""
    llm = MagicMock()
    llm.generate_structured_content = AsyncMock(return_value=sample_report_json)
    llm.generate_text = AsyncMock(return_value='<svg viewBox="0 0 800 600"></svg>')
    llm.generate_from_media = AsyncMock(return_value="A transcript of the uploaded media.")
    return llm
