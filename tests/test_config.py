"""
Tests for core/config.py: settings defaults and environment overrides.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from memory_context.core.config import ChunkingSettings, RetrievalSettings, Settings


class TestRetrievalSettings:
    def test_defaults(self):
        retrieval = RetrievalSettings()
        assert retrieval.top_k_candidates == 20
        assert retrieval.max_context_items == 5
        assert retrieval.min_similarity == pytest.approx(0.30)
        assert retrieval.half_life_days == pytest.approx(14.0)
        assert retrieval.exclude_rounds == 0

    def test_allowed_tags(self):
        assert RetrievalSettings().allowed_tags == {"manual", "summary", "user_input"}
        assert RetrievalSettings(include_ai_output=True).allowed_tags == {
            "manual",
            "summary",
            "user_input",
            "ai_output",
        }

    def test_half_life_must_be_positive(self):
        with pytest.raises(ValidationError):
            RetrievalSettings(half_life_days=0)


class TestSettings:
    def test_nested_env_override(self, monkeypatch):
        monkeypatch.setenv("RETRIEVAL__MIN_SIMILARITY", "0.45")
        monkeypatch.setenv("CHUNKING__CHUNK_SIZE", "300")
        monkeypatch.setenv("VOYAGE_API_KEY", "secret-key")

        settings = Settings(_env_file=None)

        assert settings.retrieval.min_similarity == pytest.approx(0.45)
        assert settings.chunking.chunk_size == 300
        assert settings.voyage_api_key.get_secret_value() == "secret-key"
        assert "secret-key" not in repr(settings)

    def test_chunk_overlap_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            ChunkingSettings(chunk_overlap=-1)
