"""
OpenAI Embedding Backend
=========================
Computes embeddings through the OpenAI REST API instead of a local model.

Model identifiers are configured with a provider prefix, e.g.
``openai/text-embedding-ada-002``.  The 7-character prefix is stripped
before the name is sent to the API.

Requests:
    POST {base_url}/embeddings
        {"input": "text" | ["t1", "t2"], "model": "text-embedding-ada-002"}
    GET  {base_url}/models

Responses:
    {"data": [{"embedding": [...], "index": 0}, ...]}
    {"data": [{"id": "text-embedding-ada-002"}, ...]}

Batch ordering:
    When the items of a batch response carry an ``index`` field, each
    embedding is placed at that index.  Without one, list order is used.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from text_embedder.errors import ProviderError
from text_embedder.remote.http_client import HttpClient, HttpResponse

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
PROVIDER_PREFIX = "openai/"
PROVIDER_PREFIX_LENGTH = len(PROVIDER_PREFIX)  # 7


@dataclass(frozen=True)
class ProviderConfig:
    """Provider model id (with prefix) and API credential."""

    model_id: str
    api_key: str

    @property
    def model_name(self) -> str:
        """Model id with the provider prefix removed."""
        return self.model_id[PROVIDER_PREFIX_LENGTH:]


class OpenAIEmbeddingBackend:
    """
    Remote embedding backend.  Construction performs no network I/O.

    Usage:
        backend = OpenAIEmbeddingBackend(
            ProviderConfig("openai/text-embedding-ada-002", api_key),
        )
        vector = backend.embed("Hello world")
    """

    def __init__(
        self,
        config: ProviderConfig,
        http_client: Optional[HttpClient] = None,
        base_url: str = OPENAI_BASE_URL,
    ):
        self.config = config
        self.client = http_client or HttpClient()
        self.base_url = base_url.rstrip("/")

    @property
    def embeddings_url(self) -> str:
        return f"{self.base_url}/embeddings"

    @property
    def models_url(self) -> str:
        return f"{self.base_url}/models"

    def _headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _send(self, method: str, url: str, payload: Any = None) -> HttpResponse:
        # OSError covers URLError as well as read timeouts and dropped connections.
        try:
            if method == "POST":
                return self.client.post(url, json.dumps(payload), self._headers())
            return self.client.get(url, self._headers(json_body=False))
        except OSError as exc:
            logger.error("OpenAI API unreachable: %s", exc)
            raise ProviderError(f"OpenAI API unreachable: {exc}") from exc

    def _post_embeddings(self, inputs: Any) -> List[Dict[str, Any]]:
        payload = {"input": inputs, "model": self.config.model_name}
        resp = self._send("POST", self.embeddings_url, payload)
        return _data_items(resp)

    def embed(self, text: str) -> List[float]:
        """Embed one text with a single request."""
        data = self._post_embeddings(text)
        if not data:
            raise ProviderError("OpenAI API returned no embeddings")
        return _vector(data[0])

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed several texts with exactly one request."""
        texts = list(texts)
        vectors = order_embeddings(self._post_embeddings(texts), len(texts))
        logger.info("Embedded %d texts via %s", len(vectors), self.config.model_name)
        return vectors

    def list_models(self) -> List[str]:
        """Return the ids of every model visible to this credential."""
        resp = self._send("GET", self.models_url)
        try:
            return [str(m["id"]) for m in _data_items(resp)]
        except (KeyError, TypeError) as exc:
            raise ProviderError(
                f"OpenAI API returned a malformed model listing: {exc}", body=resp.body
            ) from exc


def _parse_ok(resp: HttpResponse) -> Dict[str, Any]:
    if resp.status != 200:
        logger.error("OpenAI API error: %s", resp.body)
        raise ProviderError(f"OpenAI API error: {resp.body}", body=resp.body)
    try:
        payload = json.loads(resp.body)
    except json.JSONDecodeError as exc:
        raise ProviderError(
            f"OpenAI API returned invalid JSON: {exc}", body=resp.body
        ) from exc
    if not isinstance(payload, dict):
        raise ProviderError("OpenAI API returned a non-object body", body=resp.body)
    return payload


def _data_items(resp: HttpResponse) -> List[Dict[str, Any]]:
    data = _parse_ok(resp).get("data") or []
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ProviderError("OpenAI API returned a malformed data field", body=resp.body)
    return data


def _vector(item: Dict[str, Any]) -> List[float]:
    try:
        return [float(v) for v in item["embedding"]]
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderError(f"OpenAI API returned a malformed embedding: {exc}") from exc


def order_embeddings(data: Sequence[Dict[str, Any]], expected: int) -> List[List[float]]:
    """
    Arrange response items into request order.

    Items are placed by their ``index`` field when every item has one;
    otherwise they are taken as listed.

    Raises:
        ProviderError : wrong item count, indices that do not cover
                        0..expected-1 exactly once, or a malformed embedding
    """
    if len(data) != expected:
        raise ProviderError(
            f"OpenAI API returned {len(data)} embeddings for {expected} inputs"
        )

    if not all("index" in item for item in data):
        return [_vector(item) for item in data]

    ordered: List[Optional[List[float]]] = [None] * expected
    for item in data:
        idx = item["index"]
        if not isinstance(idx, int) or not 0 <= idx < expected or ordered[idx] is not None:
            raise ProviderError(f"OpenAI API returned an invalid embedding index: {idx}")
        ordered[idx] = _vector(item)
    return ordered  # type: ignore[return-value]
