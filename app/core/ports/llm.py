"""LLM port interface.

Defines the contract for the extraction oracle. Core code depends only on
this abstraction, not on specific implementations like Bedrock.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class ModelConfig:
    """Configuration for a specific model."""
    name: str           # e.g., "us.anthropic.claude-haiku-4-5-..."
    role: str           # e.g., "medical_event_extraction"
    max_tokens: int
    temperature: float
    timeout: float
    context_window: int
    system_prompt: str


class LLMPort(ABC):
    """Abstract interface for LLM providers.

    Implementations: BedrockAdapter
    """

    @abstractmethod
    def get_model_config(self, model: str) -> ModelConfig:
        """Get configuration for a model.

        Args:
            model: Model key ("haiku" or "sonnet")

        Returns:
            ModelConfig with all settings
        """
        pass

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        model: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        system: Optional[str] = None,
    ) -> str:
        """Generate text completion.

        Args:
            prompt: User prompt
            model: Model key ("haiku" or "sonnet")
            max_tokens: Override config max_tokens
            temperature: Override config temperature
            system: Override config system_prompt

        Returns:
            Generated text response

        Raises:
            LLMError: If the provider call fails
        """
        pass
