"""Unit tests for capability type definitions."""

from __future__ import annotations

import pytest

from modelhub.infra.ai.capabilities.types import (
    CAPABILITY_DESCRIPTIONS,
    MODEL_FEATURE_DESCRIPTIONS,
    Capability,
    ModelFeature,
    ModelType,
    ProviderCapabilities,
    get_all_model_features,
    get_model_features_with_descriptions,
)


@pytest.mark.unit
class TestCapability:
    def test_accessor_names(self):
        assert Capability.LANGUAGE.accessor == "language_model"
        assert Capability.RERANK.accessor == "rerank_model"

    def test_every_capability_described(self):
        assert set(CAPABILITY_DESCRIPTIONS) == set(Capability)

    @pytest.mark.parametrize(
        ("model_type", "capability"),
        [
            ("llm", Capability.LANGUAGE),
            ("text-embedding", Capability.EMBEDDING),
            ("rerank", Capability.RERANK),
            ("speech2text", Capability.TRANSCRIPTION),
            ("tts", Capability.SPEECH),
            ("text2image", Capability.IMAGE),
            ("moderation", Capability.MODERATION),
        ],
    )
    def test_model_type_capability(self, model_type, capability):
        assert ModelType(model_type).capability is capability


@pytest.mark.unit
class TestProviderCapabilities:
    def test_supports_accepts_strings(self):
        caps = ProviderCapabilities([Capability.LANGUAGE, Capability.EMBEDDING])

        assert caps.supports("embedding")
        assert not caps.supports(Capability.RERANK)

    def test_get_all_covers_every_capability(self):
        caps = ProviderCapabilities([Capability.LANGUAGE])

        result = caps.get_all()

        assert len(result) == len(Capability)
        assert result[Capability.LANGUAGE] is True
        assert result[Capability.IMAGE] is False

    def test_describe(self):
        caps = ProviderCapabilities([Capability.RERANK])

        assert caps.describe() == [CAPABILITY_DESCRIPTIONS[Capability.RERANK]]


@pytest.mark.unit
class TestModelFeatures:
    def test_every_feature_described(self):
        assert set(MODEL_FEATURE_DESCRIPTIONS) == set(ModelFeature)

    def test_get_all_model_features(self):
        features = get_all_model_features()

        assert len(features) == 9
        assert ModelFeature.VISION in features
        assert ModelFeature.STRUCTURED_OUTPUT in features

    def test_features_with_descriptions(self):
        described = get_model_features_with_descriptions()

        assert [item["type"] for item in described] == [f.value for f in ModelFeature]
        assert {
            "type": "tool-call",
            "name": "Tool Call",
            "description": "Function and tool calling",
        } in described
        assert all(item["name"] and item["description"] for item in described)
