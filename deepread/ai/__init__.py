"""
AI - model-backed content generation.

Generated content is parsed and validated before it is stored; a failed
generation raises instead of storing placeholder content.
"""

from deepread.ai.primer_service import (
    PrimerGenerationError,
    PrimerService,
    parse_primer_response,
)

__all__ = [
    "PrimerGenerationError",
    "PrimerService",
    "parse_primer_response",
]
