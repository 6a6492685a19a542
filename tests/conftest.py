from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from text_embedder.remote.http_client import HttpResponse
from text_embedder.runtime.environment import InferenceEnvironment

VOCAB = [
    "[PAD]",
    "[UNK]",
    "[CLS]",
    "[SEP]",
    "[MASK]",
    "hello",
    "world",
    "##s",
    "cafe",
    "the",
]

BERT_INPUTS = [
    ("input_ids", [-1, -1]),
    ("attention_mask", [-1, -1]),
    ("token_type_ids", [-1, -1]),
]
BERT_OUTPUTS = [
    ("pooler_output", [-1, 4]),
    ("last_hidden_state", [-1, -1, 4]),
]

HIDDEN_SIZE = 4


# ---------------------------------------------------------------------------
# OpenVINO stand-ins: just enough of Core / Model / CompiledModel / Output
# ---------------------------------------------------------------------------

class FakeDimension:
    def __init__(self, value: int):
        self._value = value

    @property
    def is_static(self) -> bool:
        return self._value >= 0

    def get_length(self) -> int:
        return self._value


class FakeRank:
    def __init__(self, dynamic: bool):
        self.is_dynamic = dynamic


class FakePartialShape:
    def __init__(self, dims):
        self._dims = dims

    @property
    def rank(self) -> FakeRank:
        return FakeRank(self._dims is None)

    def __iter__(self):
        return iter(FakeDimension(d) for d in self._dims)


class FakePort:
    def __init__(self, name: str, shape):
        self._name = name
        self._shape = shape

    def get_names(self):
        return {self._name} if self._name else set()

    def get_any_name(self) -> str:
        return self._name

    def get_partial_shape(self) -> FakePartialShape:
        return FakePartialShape(self._shape)


class FakeModel:
    def __init__(self, inputs=BERT_INPUTS, outputs=BERT_OUTPUTS):
        self.inputs = [FakePort(n, s) for n, s in inputs]
        self.outputs = [FakePort(n, s) for n, s in outputs]


def token_table(vocab_size: int = 32, hidden: int = HIDDEN_SIZE) -> np.ndarray:
    """Deterministic per-token vectors: row i is [i, i+0.5, i+1, i+1.5...]."""
    ids = np.arange(vocab_size, dtype=np.float32)[:, None]
    return ids + 0.5 * np.arange(hidden, dtype=np.float32)[None, :]


class FakeCompiledModel:
    """Looks up one row per input id; ignores mask and token types."""

    def __init__(self, model: FakeModel, output_name: str = "last_hidden_state"):
        self.model = model
        self.output_name = output_name
        self.calls = []

    def __call__(self, inputs):
        self.calls.append(inputs)
        table = token_table()
        ids = inputs["input_ids"]
        assert ids.dtype == np.int64 and ids.shape[0] == 1
        return {self.output_name: table[ids]}


class FakeCore:
    def __init__(self, models=None, devices=("CPU",)):
        self.models = dict(models or {})
        self.available_devices = list(devices)
        self.compiled = []

    def read_model(self, model: str):
        name = Path(model).name
        if name not in self.models:
            raise RuntimeError(f"Unable to read the model: {model}")
        return self.models[name]

    def compile_model(self, model, device_name: str):
        compiled = FakeCompiledModel(model)
        self.compiled.append((compiled, device_name))
        return compiled

    def get_property(self, device: str, key: str):
        if key == "FULL_DEVICE_NAME":
            return f"Fake {device}"
        raise RuntimeError(f"Unsupported property {key}")


# ---------------------------------------------------------------------------
# HTTP stand-in
# ---------------------------------------------------------------------------

class FakeHttpClient:
    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []

    def queue(self, status: int, payload) -> None:
        body = payload if isinstance(payload, str) else json.dumps(payload)
        self.responses.append(HttpResponse(status=status, body=body))

    def post(self, url, body, headers=None):
        self.requests.append(("POST", url, json.loads(body), dict(headers or {})))
        return self.responses.pop(0)

    def get(self, url, headers=None):
        self.requests.append(("GET", url, None, dict(headers or {})))
        return self.responses.pop(0)


def embedding_response(vectors, with_index: bool = True):
    data = []
    for i, vec in enumerate(vectors):
        item = {"object": "embedding", "embedding": vec}
        if with_index:
            item["index"] = i
        data.append(item)
    return {"object": "list", "data": data}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def vocab_path(tmp_path):
    path = tmp_path / "vocab.txt"
    path.write_text("\n".join(VOCAB) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def model_path(tmp_path):
    path = tmp_path / "model.onnx"
    path.write_bytes(b"fake-graph")
    return path


@pytest.fixture
def fake_core():
    return FakeCore(models={"model.onnx": FakeModel()})


@pytest.fixture
def environment(fake_core):
    return InferenceEnvironment(core=fake_core)


@pytest.fixture
def http_client():
    return FakeHttpClient()
