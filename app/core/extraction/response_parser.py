"""
ResponseParser - Decode untrusted oracle output into validated payloads.

Every decode ends in exactly one of three outcomes:
    NOT_JSON     no JSON span could be located and decoded
    WRONG_SHAPE  JSON decoded but did not match the expected shape
    VALID        JSON decoded and matched the shape
"""
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ChunkParseError

logger = logging.getLogger(__name__)


class DecodeOutcome(str, Enum):
    NOT_JSON = "NOT_JSON"
    WRONG_SHAPE = "WRONG_SHAPE"
    VALID = "VALID"


@dataclass
class DecodeResult:
    """Outcome of decoding one oracle response."""
    outcome: DecodeOutcome
    payload: Any = None
    error: Optional[str] = None
    dropped: int = 0  # array items rejected by item validation

    @property
    def is_valid(self) -> bool:
        return self.outcome == DecodeOutcome.VALID

    def unwrap(self) -> Any:
        """Return the payload or raise ChunkParseError carrying the outcome kind."""
        if self.outcome == DecodeOutcome.VALID:
            return self.payload
        kind = ChunkParseError.NOT_JSON if self.outcome == DecodeOutcome.NOT_JSON else ChunkParseError.WRONG_SHAPE
        raise ChunkParseError(self.error or self.outcome.value, kind=kind)


class ResponseParser:
    """Parse JSON responses from the oracle with schema validation."""

    def __init__(self):
        self._decoder = json.JSONDecoder()

    def decode_object(
        self,
        response: str,
        shape: Optional[Type[BaseModel]] = None,
    ) -> DecodeResult:
        """
        Decode the first top-level JSON object in a response.

        Args:
            response: Raw oracle response text
            shape: Pydantic model the object must satisfy (None accepts any object)

        Returns:
            DecodeResult whose payload is the decoded dict when VALID
        """
        text = self._strip_fences(response or "")
        start = text.find("{")
        if start == -1:
            return DecodeResult(DecodeOutcome.NOT_JSON, error="No JSON object found in response")

        try:
            decoded, _ = self._decoder.raw_decode(text, start)
        except json.JSONDecodeError as e:
            return DecodeResult(DecodeOutcome.NOT_JSON, error=f"Malformed JSON object: {e}")

        error = self._validate(decoded, shape)
        if error:
            return DecodeResult(DecodeOutcome.WRONG_SHAPE, error=error)
        return DecodeResult(DecodeOutcome.VALID, payload=decoded)

    def decode_array(
        self,
        response: str,
        item_shape: Optional[Type[BaseModel]] = None,
    ) -> DecodeResult:
        """
        Decode a JSON array of objects, wrapping a lone object.

        Items that fail item_shape are dropped individually. A truncated
        array keeps every item that was complete before the cut.

        Args:
            response: Raw oracle response text
            item_shape: Pydantic model each item must satisfy

        Returns:
            DecodeResult whose payload is a list of dicts when VALID
        """
        text = self._strip_fences(response or "")
        starts = [i for i in (text.find("["), text.find("{")) if i != -1]
        if not starts:
            return DecodeResult(DecodeOutcome.NOT_JSON, error="No JSON array found in response")

        start = min(starts)
        try:
            decoded, _ = self._decoder.raw_decode(text, start)
        except json.JSONDecodeError as e:
            if text[start] != "[":
                return DecodeResult(DecodeOutcome.NOT_JSON, error=f"Malformed JSON object: {e}")
            decoded = self._salvage_array(text, start)
            if not decoded:
                return DecodeResult(DecodeOutcome.NOT_JSON, error=f"Malformed JSON array: {e}")
            logger.info(f"Recovered {len(decoded)} items from truncated JSON array")

        if isinstance(decoded, dict):
            decoded = [decoded]

        items: List[Dict[str, Any]] = []
        dropped = 0
        for item in decoded:
            if self._validate(item, item_shape):
                dropped += 1
                continue
            items.append(item)

        if dropped:
            logger.debug(f"Dropped {dropped} array items failing shape validation")
        if decoded and not items:
            return DecodeResult(
                DecodeOutcome.WRONG_SHAPE,
                error=f"All {dropped} array items failed shape validation",
                dropped=dropped,
            )
        return DecodeResult(DecodeOutcome.VALID, payload=items, dropped=dropped)

    def _validate(self, data: Any, shape: Optional[Type[BaseModel]]) -> Optional[str]:
        """Return an error message when data does not fit shape, else None."""
        if not isinstance(data, dict):
            return f"Expected object, got {type(data).__name__}"
        if shape is None:
            return None
        try:
            shape(**data)
        except (PydanticValidationError, TypeError) as e:
            return f"{shape.__name__} validation failed: {e}"
        return None

    def _strip_fences(self, response: str) -> str:
        """Extract JSON from markdown code blocks."""
        if "```json" in response:
            start = response.find("```json") + 7
            end = response.find("```", start)
            return response[start:end if end != -1 else None].strip()
        if "```" in response:
            start = response.find("```") + 3
            end = response.find("```", start)
            return response[start:end if end != -1 else None].strip()
        return response.strip()

    def _salvage_array(self, text: str, start: int) -> List[Any]:
        """Decode array items one at a time until the first incomplete one."""
        items = []
        pos = start + 1
        while pos < len(text):
            while pos < len(text) and text[pos] in " \t\r\n,":
                pos += 1
            if pos >= len(text) or text[pos] == "]":
                break
            try:
                value, pos = self._decoder.raw_decode(text, pos)
            except json.JSONDecodeError:
                break
            items.append(value)
        return items
