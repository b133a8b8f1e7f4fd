"""LLM adapters."""
from app.adapters.llm.bedrock import BedrockAdapter

__all__ = ["BedrockAdapter"]
