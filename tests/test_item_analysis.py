import pytest

from boxbox.config import Settings
from boxbox.services.item_analysis import (
    AnalysisError,
    create_analyzer,
    extract_json_text,
    parse_analysis,
    resolve_profile,
)


def test_extract_prefers_first_fenced_block():
    reply = 'Sure!\n```json\n{"name": "A"}\n```\nand also\n```\n{"name": "B"}\n```'
    assert extract_json_text(reply) == '{"name": "A"}'


def test_extract_accepts_unlabeled_fence():
    assert extract_json_text('```\n{"name": "A"}\n```') == '{"name": "A"}'


def test_extract_falls_back_to_trimmed_reply():
    assert extract_json_text('\n  {"name": "A"}  \n') == '{"name": "A"}'


def test_resolve_profile_marks_text_mode_models():
    config = Settings(ANALYSIS_MODEL_HIGH="vendor/plain", ANALYSIS_TEXT_MODE_MODELS=["vendor/plain"])
    assert resolve_profile("high", config).structured_output is False
    assert resolve_profile("fast", config).structured_output is True
    with pytest.raises(ValueError):
        resolve_profile("ultra", config)


def test_parse_analysis_trims_name_and_defaults_description():
    analysis = parse_analysis('{"name": "  Drill ", "description": null, "quantity": 1.5}')
    assert analysis.name == "Drill"
    assert analysis.description == ""
    assert analysis.quantity == 1.5


def test_parse_analysis_rejects_non_finite_quantity():
    with pytest.raises(AnalysisError):
        parse_analysis('{"name": "Drill", "description": "", "quantity": Infinity}')


def test_no_api_key_means_no_analyzer():
    assert create_analyzer(Settings(OPENROUTER_API_KEY=None)) is None
    assert create_analyzer(Settings(OPENROUTER_API_KEY="sk-test")) is not None
