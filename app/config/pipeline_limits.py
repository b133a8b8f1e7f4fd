"""
Pipeline processing limits and constants.

Centralized configuration for chunk sizes, oracle sample sizes,
concurrency caps and synthesis thresholds used across the pipeline.
"""

# Text chunking limits
STRUCTURED_CHUNK_SIZE = 50_000
"""Character chunk size for category-specific structured extraction"""

EVENT_CHUNK_SIZE = 100_000
"""Character chunk size for medical event extraction (sequential chunks)"""

CHUNK_BREAK_MIN_RATIO = 0.7
"""Natural break must fall at or after this fraction of the window to be used"""

# Oracle input limits
CLASSIFICATION_SAMPLE_CHARS = 10_000
"""Leading characters of a document sent for classification"""

RAW_TEXT_FALLBACK_CHARS = 5_000
"""Leading characters kept as rawText for categories with no extraction prompt"""

# Synthesis thresholds
TREATMENT_GAP_THRESHOLD_DAYS = 30
"""Consecutive visits further apart than this are a treatment gap"""

NARRATIVE_MAX_DIAGNOSES = 10
NARRATIVE_MAX_PROVIDERS = 8
NARRATIVE_MAX_EVENTS = 30
SUMMARY_MAX_DIAGNOSES = 5

# Concurrency
MAX_CONCURRENT_DOCUMENTS = 5
"""Maximum documents processed at once by the task executor"""

MAX_TRACKED_CASES = 1_000
"""Cases whose last completion state the completion gate remembers"""
