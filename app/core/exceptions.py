"""Core domain exceptions.

All exceptions raised by core logic inherit from CoreError.
Adapters catch provider-specific errors and re-raise as these.
"""


class CoreError(Exception):
    """Base for all core domain errors."""
    pass


class LLMError(CoreError):
    """LLM operation failed after retries."""
    pass


class ExtractionError(CoreError):
    """Extraction logic failed."""
    pass


class ChunkParseError(ExtractionError):
    """Oracle output for a single chunk could not be decoded.

    Attributes:
        kind: "not_json" when no JSON span could be decoded,
              "wrong_shape" when JSON decoded but did not match the expected shape
    """

    NOT_JSON = "not_json"
    WRONG_SHAPE = "wrong_shape"

    def __init__(self, message: str, kind: str = NOT_JSON):
        super().__init__(message)
        self.kind = kind


class EventExtractionError(ExtractionError):
    """Medical event extraction failed for a whole document."""
    pass


class DocumentPipelineError(CoreError):
    """A document's main processing stages failed."""
    pass


class InvalidTransitionError(DocumentPipelineError):
    """Document status change not allowed by the processing state machine."""
    pass


class SynthesisError(CoreError):
    """Case-level aggregation failed."""
    pass


class ChronologyError(CoreError):
    """Chronology generation failed."""
    pass


class ValidationError(CoreError):
    """Data validation failed."""
    pass


class StorageError(CoreError):
    """Storage operation failed."""
    pass


class NotFoundError(StorageError):
    """Requested record does not exist."""
    pass
