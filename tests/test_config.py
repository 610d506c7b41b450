"""
Tests for Settings validation and engine configuration.
"""
from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError

from baseline.core.config import Settings


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_defaults_match_ranking_policy():
    settings = make_settings()
    config = settings.engine_config()

    assert config.weights.discussion == 0.45
    assert config.weights.video == 0.25
    assert config.weights.trends == 0.15
    assert config.weights.cross_platform == 0.15
    assert config.match_threshold == 0.4
    assert config.min_token_length == 3
    assert config.top_n == 20
    assert settings.DECISION_CANDIDATE_LIMIT == 15


def test_weights_are_configurable():
    settings = make_settings(WEIGHT_VIDEO=0.5, WEIGHT_TRENDS=0.0)
    weights = settings.ranking_weights()
    assert weights.video == 0.5
    assert weights.trends == 0.0


def test_negative_weight_rejected():
    with pytest.raises(ValidationError, match="cannot be negative"):
        make_settings(WEIGHT_DISCUSSION=-0.1)


@pytest.mark.parametrize("threshold", [-0.01, 1.5])
def test_threshold_out_of_range_rejected(threshold):
    with pytest.raises(ValidationError, match="MATCH_THRESHOLD"):
        make_settings(MATCH_THRESHOLD=threshold)


def test_top_n_must_be_positive():
    with pytest.raises(ValidationError, match="at least 1"):
        make_settings(RANK_TOP_N=0)


def test_google_credentials_must_be_json_object():
    with pytest.raises(ValidationError, match="not valid JSON"):
        make_settings(GOOGLE_CREDENTIALS="not json")
    with pytest.raises(ValidationError, match="JSON object"):
        make_settings(GOOGLE_CREDENTIALS=json.dumps(["a", "b"]))

    settings = make_settings(GOOGLE_CREDENTIALS=json.dumps({"type": "service_account"}))
    assert settings.GOOGLE_CREDENTIALS


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("MATCH_THRESHOLD", "0.55")
    monkeypatch.setenv("RANK_TOP_N", "7")
    settings = make_settings()
    assert settings.MATCH_THRESHOLD == 0.55
    assert settings.RANK_TOP_N == 7


def test_startup_summary_does_not_leak_secrets(caplog):
    settings = make_settings(OPENAI_API_KEY="sk-secret-value", CRON_SECRET="cron-secret-value")
    config_logger = logging.getLogger("baseline.core.config")
    config_logger.addHandler(caplog.handler)
    try:
        with caplog.at_level("INFO", logger="baseline.core.config"):
            settings.log_startup_summary()
    finally:
        config_logger.removeHandler(caplog.handler)
    assert "sk-secret-value" not in caplog.text
    assert "cron-secret-value" not in caplog.text
    assert "OpenAI API Key" in caplog.text
