"""
Decomposition service adapters.
"""

from atomforge.infrastructure.llm.mock import MockDecomposer, units_from_dicts
from atomforge.infrastructure.llm.openai_chat import (
    OpenAIDecomposer,
    OpenAIDecomposerConfig,
)

__all__ = [
    "MockDecomposer",
    "OpenAIDecomposer",
    "OpenAIDecomposerConfig",
    "units_from_dicts",
]
