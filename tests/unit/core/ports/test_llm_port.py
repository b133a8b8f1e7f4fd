"""Tests for the oracle (LLM port) interface."""
import pytest
from app.core.ports.llm import LLMPort, ModelConfig


class EchoOracle(LLMPort):
    def __init__(self):
        self.calls = []

    def get_model_config(self, model: str) -> ModelConfig:
        return ModelConfig(
            name=f"echo-{model}", role="document_extraction", max_tokens=100,
            temperature=0.0, timeout=10.0, context_window=1000,
            system_prompt="default system",
        )

    async def generate(self, prompt, model, max_tokens=None, temperature=None, system=None) -> str:
        self.calls.append({"model": model, "max_tokens": max_tokens, "system": system})
        return prompt.upper()


class TestLLMPortInterface:
    def test_cannot_instantiate_abstract_port(self):
        with pytest.raises(TypeError):
            LLMPort()

    def test_generate_is_required(self):
        class ConfigOnly(LLMPort):
            def get_model_config(self, model):
                return None

        with pytest.raises(TypeError):
            ConfigOnly()

    @pytest.mark.asyncio
    async def test_overrides_reach_the_provider(self):
        """Per-call max_tokens and system prompt are passed through untouched"""
        oracle = EchoOracle()

        result = await oracle.generate("classify", model="haiku", max_tokens=500, system="json only")

        assert result == "CLASSIFY"
        assert oracle.calls == [{"model": "haiku", "max_tokens": 500, "system": "json only"}]
        assert oracle.get_model_config("sonnet").name == "echo-sonnet"

    def test_vision_is_not_part_of_contract(self):
        """Only text generation is required of providers."""
        assert not hasattr(LLMPort, "generate_with_vision")
