"""
Model / Credential Validation
==============================
Checks a candidate model before an ``Embedder`` is built around it, and
reports the embedding dimensionality it will produce.

Local models must:
    - exist on disk and parse
    - have exactly 3 inputs: input_ids, attention_mask, token_type_ids
      (in that positional order)
    - expose an output shaped (?, ?, hidden); hidden is the dimension

Remote models must appear in the provider's model listing.  The OpenAI API
does not report output sizes, so the dimension is guessed from the model
family in the name (see ``infer_openai_dimensions``).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from text_embedder.errors import (
    GraphLoadError,
    InvalidArgumentError,
    InvalidModelShapeError,
    ModelFileNotFoundError,
    ModelNotFoundError,
)
from text_embedder.remote.http_client import HttpClient
from text_embedder.remote.openai_backend import (
    OPENAI_BASE_URL,
    PROVIDER_PREFIX_LENGTH,
    OpenAIEmbeddingBackend,
    ProviderConfig,
)
from text_embedder.runtime.environment import InferenceEnvironment
from text_embedder.runtime.local_backend import (
    check_input_names,
    describe_ports,
    find_embedding_output,
    read_graph,
)

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_DIMENSIONS = 768


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    dimensions: Optional[int] = None
    reason: Optional[str] = None
    code: int = 200

    @classmethod
    def success(cls, dimensions: int) -> "ValidationResult":
        return cls(valid=True, dimensions=dimensions)

    @classmethod
    def failure(
        cls, reason: str, code: int = InvalidModelShapeError.status_code
    ) -> "ValidationResult":
        return cls(valid=False, reason=reason, code=code)


def validate_local(model_path: str, environment: InferenceEnvironment) -> ValidationResult:
    logger.info("Validating model: %s", model_path)

    if not Path(model_path).exists():
        logger.error("Model file not found: %s", model_path)
        return ValidationResult.failure(
            f"Model file not found: {model_path}", ModelFileNotFoundError.status_code
        )

    try:
        model = read_graph(model_path, environment)
    except GraphLoadError as exc:
        logger.error("Invalid model: %s", exc)
        return ValidationResult.failure(str(exc), exc.status_code)

    input_names = [name for name, _ in describe_ports(model.inputs)]
    problem = check_input_names(input_names)
    if problem:
        logger.error("Invalid model: %s", problem)
        return ValidationResult.failure(f"Invalid model: {problem}")

    selected = find_embedding_output(describe_ports(model.outputs))
    if selected is None:
        logger.error("Invalid model: output tensor not found")
        return ValidationResult.failure("Invalid model: output tensor not found")

    return ValidationResult.success(selected[1])


def infer_openai_dimensions(model_name: str) -> int:
    """
    Guess the embedding size of an OpenAI model from its name.

    The API exposes no dimension field, so this table is hard coded:

        -ada-  ending in 002  -> 1536
        -ada-  otherwise      -> 1024
        -davinci-             -> 12288
        -curie-               -> 4096
        -babbage-             -> 2048
        anything else         -> 768
    """
    if "-ada-" in model_name:
        return 1536 if model_name.endswith("002") else 1024
    if "-davinci-" in model_name:
        return 12288
    if "-curie-" in model_name:
        return 4096
    if "-babbage-" in model_name:
        return 2048
    return DEFAULT_REMOTE_DIMENSIONS


def validate_remote(
    model_id: str,
    api_key: str,
    http_client: Optional[HttpClient] = None,
    base_url: str = OPENAI_BASE_URL,
) -> ValidationResult:
    """
    Confirm the credential can see the model and infer its dimensions.

    Raises:
        InvalidArgumentError : empty id or key, or id shorter than the prefix
        ProviderError        : non-200 response from the model listing
        ModelNotFoundError   : model absent from the listing
    """
    if not model_id or not api_key or len(model_id) < PROVIDER_PREFIX_LENGTH:
        raise InvalidArgumentError("Invalid OpenAI model path or API key")

    config = ProviderConfig(model_id=model_id, api_key=api_key)
    backend = OpenAIEmbeddingBackend(config, http_client, base_url)
    available = backend.list_models()

    if config.model_name not in available:
        raise ModelNotFoundError(f"OpenAI model not found: {config.model_name}")

    dims = infer_openai_dimensions(config.model_name)
    logger.info("OpenAI model %s validated (dims=%d)", config.model_name, dims)
    return ValidationResult.success(dims)
