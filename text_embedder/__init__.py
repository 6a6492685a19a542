"""
text-embedder -- root package.

Turns text into fixed-size embedding vectors for search and indexing:
    embeddings -> tokenizer, pooling, validation and the Embedder facade
    runtime    -> OpenVINO inference environment and local model backend
    remote     -> HTTP client and OpenAI embeddings backend
"""

from text_embedder.embeddings.embedder import Embedder, EmbedResult
from text_embedder.runtime.environment import InferenceEnvironment

__version__ = "0.1.0"

__all__ = ["Embedder", "EmbedResult", "InferenceEnvironment"]
