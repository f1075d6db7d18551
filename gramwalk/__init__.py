"""
gramwalk: n-gram sentence generation and 32-bit word puzzles

Builds a graph of word n-grams per corpus and generates random sentences by
walking it; also provides two's-complement bit-manipulation primitives.
"""

from gramwalk.model import NGramModel, GramNode, gram_key
from gramwalk.registry import ModelRegistry, model_name
from gramwalk.errors import GramwalkError, UsageError, EmptyModelError, UnknownModelError
from gramwalk import bitops
from gramwalk import tokenizer

__version__ = "0.1.0"

__all__ = [
    "NGramModel",
    "GramNode",
    "gram_key",
    "ModelRegistry",
    "model_name",
    "GramwalkError",
    "UsageError",
    "EmptyModelError",
    "UnknownModelError",
    "bitops",
    "tokenizer",
]
