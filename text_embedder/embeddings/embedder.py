"""
Embedder
=========
The single public entry point for turning text into vectors.

An ``Embedder`` is bound, for its whole lifetime, to exactly one backend:

    local   -- tokenize -> OpenVINO forward pass -> mean pool
    remote  -- one HTTP request to the OpenAI embeddings API

Every operation returns an ``EmbedResult`` instead of raising, so callers
branch on ``result.ok``:

    embedder = Embedder.local("model.onnx", "vocab.txt", env)
    result = embedder.embed("Hello world")
    if result.ok:
        index.add(result.value)
    else:
        log.error("%d: %s", result.code, result.error)

Batching:
    Remote batches are sent as one request.  Local batches are NOT batched
    through the model; each text runs its own forward pass, one after
    another.
"""

import logging
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, TypeVar, Union

from tqdm import tqdm

from text_embedder.config import EmbedderSettings
from text_embedder.embeddings.pooling import mean_pool
from text_embedder.embeddings.tokenizer import WordPieceTokenizer
from text_embedder.embeddings.validator import (
    infer_openai_dimensions,
    validate_local,
    validate_remote,
)
from text_embedder.errors import EmbedderError, InvalidArgumentError
from text_embedder.remote.http_client import HttpClient
from text_embedder.remote.openai_backend import (
    OPENAI_BASE_URL,
    OpenAIEmbeddingBackend,
    ProviderConfig,
)
from text_embedder.runtime.environment import InferenceEnvironment
from text_embedder.runtime.local_backend import ModelHandle

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class EmbedResult(Generic[T]):
    """Either a value, or an HTTP-style error code with a message."""

    value: Optional[T] = None
    code: int = 200
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "EmbedResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, code: int, error: str) -> "EmbedResult[T]":
        return cls(code=code, error=error)

    @classmethod
    def from_error(cls, exc: EmbedderError) -> "EmbedResult[T]":
        return cls.failure(exc.status_code, exc.message)


@dataclass(frozen=True)
class _LocalMode:
    handle: ModelHandle
    tokenizer: WordPieceTokenizer
    environment: InferenceEnvironment


@dataclass(frozen=True)
class _RemoteMode:
    backend: OpenAIEmbeddingBackend


class Embedder:
    """Text embedder over either a local model or a remote provider."""

    def __init__(self, mode: Union[_LocalMode, _RemoteMode]):
        self._mode = mode

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def local(
        cls,
        model_path: str,
        vocab_path: str,
        environment: InferenceEnvironment,
    ) -> "Embedder":
        """
        Load a model and vocabulary from disk.

        Raises:
            ModelFileNotFoundError : model or vocabulary file missing
            GraphLoadError         : model failed to parse or compile
        """
        handle = ModelHandle.load(model_path, environment)
        tokenizer = WordPieceTokenizer(vocab_path)
        return cls(_LocalMode(handle, tokenizer, environment))

    @classmethod
    def remote(
        cls,
        model_id: str,
        api_key: str,
        http_client: Optional[HttpClient] = None,
        base_url: str = OPENAI_BASE_URL,
    ) -> "Embedder":
        """Bind to a provider model.  No request is made here."""
        config = ProviderConfig(model_id=model_id, api_key=api_key)
        return cls(_RemoteMode(OpenAIEmbeddingBackend(config, http_client, base_url)))

    @classmethod
    def from_settings(
        cls,
        settings: EmbedderSettings,
        environment: Optional[InferenceEnvironment] = None,
        http_client: Optional[HttpClient] = None,
    ) -> "Embedder":
        """Build the embedder described by ``configs/settings.yaml``."""
        if settings.is_remote:
            return cls.remote(
                settings.openai_model,
                settings.openai_api_key,
                http_client or HttpClient(timeout=settings.openai_timeout),
                settings.openai_base_url,
            )
        if environment is None:
            raise InvalidArgumentError("A local embedder needs an InferenceEnvironment")
        return cls.local(settings.model_path, settings.vocab_path, environment)

    @property
    def is_remote(self) -> bool:
        return isinstance(self._mode, _RemoteMode)

    @property
    def dimension(self) -> Optional[int]:
        """Output size: discovered for local models, inferred for remote ones."""
        if isinstance(self._mode, _LocalMode):
            return self._mode.handle.hidden_size
        return infer_openai_dimensions(self._mode.backend.config.model_name)

    # ------------------------------------------------------------------
    # Embedding
    # ------------------------------------------------------------------

    def _embed_local(self, mode: _LocalMode, text: str) -> List[float]:
        encoded = mode.tokenizer.tokenize_and_encode(text)
        token_embeddings = mode.handle.run(encoded)
        return mean_pool(token_embeddings).tolist()

    def embed(self, text: str) -> EmbedResult[List[float]]:
        mode = self._mode
        try:
            if isinstance(mode, _LocalMode):
                return EmbedResult.success(self._embed_local(mode, text))
            return EmbedResult.success(mode.backend.embed(text))
        except EmbedderError as exc:
            return EmbedResult.from_error(exc)

    def batch_embed(
        self, texts: Sequence[str], show_progress: bool = False
    ) -> EmbedResult[List[List[float]]]:
        """
        Embed several texts, returning vectors in input order.

        The local path runs ``embed`` once per text; the first failure
        aborts the batch.
        """
        mode = self._mode
        if not texts:
            return EmbedResult.success([])
        if isinstance(mode, _RemoteMode):
            try:
                return EmbedResult.success(mode.backend.embed_batch(texts))
            except EmbedderError as exc:
                return EmbedResult.from_error(exc)

        outputs: List[List[float]] = []
        iterator = tqdm(texts, desc="Embedding", unit="text") if show_progress else texts
        for text in iterator:
            result = self.embed(text)
            if not result.ok:
                return EmbedResult.failure(result.code, result.error)
            outputs.append(result.value)
        return EmbedResult.success(outputs)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def validate_model(
        model_path: str, environment: InferenceEnvironment
    ) -> EmbedResult[int]:
        """Check a local model file; the value is its embedding size."""
        outcome = validate_local(model_path, environment)
        if not outcome.valid:
            return EmbedResult.failure(outcome.code, outcome.reason)
        return EmbedResult.success(outcome.dimensions)

    @staticmethod
    def validate_remote_model(
        model_id: str,
        api_key: str,
        http_client: Optional[HttpClient] = None,
        base_url: str = OPENAI_BASE_URL,
    ) -> EmbedResult[int]:
        """Check a provider model and credential; the value is its embedding size."""
        try:
            outcome = validate_remote(model_id, api_key, http_client, base_url)
        except EmbedderError as exc:
            return EmbedResult.from_error(exc)
        return EmbedResult.success(outcome.dimensions)

    def validate(self) -> EmbedResult[int]:
        """Validate the model this embedder is bound to."""
        mode = self._mode
        if isinstance(mode, _LocalMode):
            return self.validate_model(mode.handle.model_path, mode.environment)
        backend = mode.backend
        return self.validate_remote_model(
            backend.config.model_id,
            backend.config.api_key,
            backend.client,
            backend.base_url,
        )
