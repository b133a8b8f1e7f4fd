"""Bedrock LLM adapter.

Implements LLMPort interface by directly using boto3.
Records call counts, latency and token usage as Prometheus metrics.
"""
import asyncio
import json
import logging
import time
from typing import Optional

import boto3
from botocore.config import Config
from prometheus_client import Counter, Histogram

from app.core.exceptions import LLMError
from app.core.extraction.llm_config import LLM_SETTINGS
from app.core.ports.llm import LLMPort, ModelConfig

logger = logging.getLogger(__name__)

# Prometheus metrics
LLM_CALLS = Counter(
    "demand_llm_calls_total", "Oracle calls to Bedrock", ["model", "outcome"])
LLM_CALL_DURATION = Histogram(
    "demand_llm_call_duration_seconds", "Bedrock invoke_model latency", ["model"])
LLM_TOKENS = Counter(
    "demand_llm_tokens_total", "Tokens consumed by oracle calls", ["model", "direction"])


class BedrockAdapter(LLMPort):
    """AWS Bedrock implementation of LLMPort.

    Directly uses boto3 bedrock-runtime client.
    """

    _SYSTEM_PROMPT = "You are an expert medical record analyst for personal injury cases."

    # Model configurations
    _MODEL_CONFIGS = {
        "haiku": ModelConfig(
            name=LLM_SETTINGS.haiku_model_id,
            role="document_extraction",
            max_tokens=65536,
            temperature=0.1,
            timeout=120.0,
            context_window=200000,
            system_prompt=_SYSTEM_PROMPT,
        ),
        "sonnet": ModelConfig(
            name=LLM_SETTINGS.sonnet_model_id,
            role="chronology_writing",
            max_tokens=65536,
            temperature=0.3,
            timeout=180.0,
            context_window=200000,
            system_prompt=_SYSTEM_PROMPT,
        ),
    }

    def __init__(self, region: str = "us-east-1"):
        """Initialize adapter with boto3 client.

        Args:
            region: AWS region for Bedrock service
        """
        session = boto3.Session()
        # Large event chunks need a long read timeout (default 60s is too short)
        boto_config = Config(read_timeout=180, connect_timeout=10)
        self._client = session.client("bedrock-runtime", region_name=region, config=boto_config)

    def get_model_config(self, model: str) -> ModelConfig:
        """Get configuration for a model."""
        if model not in self._MODEL_CONFIGS:
            raise LLMError(f"Unknown model: {model}. Available: {list(self._MODEL_CONFIGS.keys())}")
        return self._MODEL_CONFIGS[model]

    async def generate(
        self,
        prompt: str,
        model: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        system: Optional[str] = None,
    ) -> str:
        """Generate text completion via Bedrock.

        Raises:
            LLMError: Wrapping any boto3/botocore failure (the original error is
                kept as __cause__ so throttling can be recognized upstream)
        """
        config = self.get_model_config(model)

        request_body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": max_tokens or config.max_tokens,
            "temperature": temperature if temperature is not None else config.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        if system or config.system_prompt:
            request_body["system"] = system or config.system_prompt

        start_time = time.time()
        try:
            # Bedrock is sync, run in executor for async compatibility
            loop = asyncio.get_event_loop()
            response = await loop.run_in_executor(
                None,
                lambda: self._client.invoke_model(
                    modelId=config.name,
                    body=json.dumps(request_body)
                ),
            )

            response_body = json.loads(response["body"].read())
            content = response_body["content"][0]["text"]
        except Exception as e:
            LLM_CALLS.labels(model=model, outcome="error").inc()
            logger.error(f"Bedrock generate failed: {e}")
            raise LLMError(f"Bedrock generate failed: {e}") from e
        finally:
            LLM_CALL_DURATION.labels(model=model).observe(time.time() - start_time)

        LLM_CALLS.labels(model=model, outcome="success").inc()
        usage = response_body.get("usage", {})
        LLM_TOKENS.labels(model=model, direction="input").inc(usage.get("input_tokens", 0))
        LLM_TOKENS.labels(model=model, direction="output").inc(usage.get("output_tokens", 0))
        if response_body.get("stop_reason") == "max_tokens":
            logger.warning(f"Bedrock response truncated at max_tokens ({request_body['max_tokens']}) for {model}")

        return content
