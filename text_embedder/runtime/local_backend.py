"""
Local Inference Backend
========================
Loads a BERT-style encoder graph (ONNX or OpenVINO IR) once and runs single
sequence forward passes through the OpenVINO runtime.

Output discovery:
    Exported encoders often expose several outputs (last hidden state,
    pooler output, attentions...).  The token-embedding output is found by
    shape: the first output of rank 3 whose batch and sequence dimensions
    are dynamic and whose hidden dimension is a fixed positive size:

        (?, ?, 384)   -> selected, hidden size 384
        (?, 384)      -> skipped (pooler output)

    ``find_embedding_output`` is a pure function over (name, shape) pairs so
    that this guess can be tested without a model file.

Inputs:
    input_ids, attention_mask, token_type_ids -- int64, shape (1, seq_len)
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from text_embedder.embeddings.tokenizer import EncodedInput
from text_embedder.errors import (
    GraphLoadError,
    InvalidModelShapeError,
    ModelFileNotFoundError,
)
from text_embedder.runtime.environment import InferenceEnvironment

logger = logging.getLogger(__name__)

INPUT_NAMES = ("input_ids", "attention_mask", "token_type_ids")

# Shape value used for dimensions the graph leaves dynamic.
DYNAMIC_DIM = -1


def port_shape(port) -> List[int]:
    """
    Convert an OpenVINO port's partial shape to a list of ints.

    Dynamic dimensions become -1.  A port of dynamic rank yields [].
    """
    partial = port.get_partial_shape()
    if partial.rank.is_dynamic:
        return []
    return [dim.get_length() if dim.is_static else DYNAMIC_DIM for dim in partial]


def port_name(port) -> str:
    """Any name of the port, or "" for an unnamed port."""
    return port.get_any_name() if port.get_names() else ""


def describe_ports(ports: Iterable) -> List[Tuple[str, List[int]]]:
    """Return (name, shape) for every port, in graph order."""
    return [(port_name(p), port_shape(p)) for p in ports]


def find_embedding_output(
    outputs: Sequence[Tuple[str, Sequence[int]]],
) -> Optional[Tuple[str, int]]:
    """
    Pick the token-embedding output from a list of (name, shape) pairs.

    Unnamed outputs are skipped since the result is looked up by name.

    Returns:
        (name, hidden_size) of the first output shaped (-1, -1, D>0),
        or None when no output matches.
    """
    for name, shape in outputs:
        if not name:
            continue
        if (
            len(shape) == 3
            and shape[0] == DYNAMIC_DIM
            and shape[1] == DYNAMIC_DIM
            and shape[2] > 0
        ):
            return name, int(shape[2])
    return None


def check_input_names(names: Sequence[str]) -> Optional[str]:
    """Return None if the inputs match INPUT_NAMES in order, else the reason."""
    if len(names) != len(INPUT_NAMES):
        return f"input count is not {len(INPUT_NAMES)} (got {len(names)})"
    for position, (actual, expected) in enumerate(zip(names, INPUT_NAMES)):
        if actual != expected:
            return f"{expected} tensor not found at input {position} (got '{actual}')"
    return None


def read_graph(model_path: str, environment: InferenceEnvironment):
    """
    Parse a model file through the environment's Core.

    Raises:
        ModelFileNotFoundError : if the file does not exist
        GraphLoadError         : if the runtime cannot parse it
    """
    path = Path(model_path)
    if not path.exists():
        raise ModelFileNotFoundError(f"Model file not found: {path}")
    try:
        return environment.read_model(str(path))
    except RuntimeError as exc:
        raise GraphLoadError(f"Failed to read model {path}: {exc}") from exc


class ModelHandle:
    """
    A compiled encoder bound to one model file.

    ``output_name`` and ``hidden_size`` are None when no output matched the
    shape heuristic; such a handle still exists, but ``run`` refuses to
    execute.  Validation is expected to reject those models earlier.
    """

    def __init__(
        self,
        model_path: str,
        compiled_model,
        input_names: Sequence[str],
        output: Optional[Tuple[str, int]],
    ):
        self.model_path = model_path
        self._compiled_model = compiled_model
        self.input_names = tuple(input_names)
        self.output_name = output[0] if output else None
        self.hidden_size = output[1] if output else None

    @classmethod
    def load(cls, model_path: str, environment: InferenceEnvironment) -> "ModelHandle":
        """
        Read, inspect and compile a model.

        Raises:
            ModelFileNotFoundError : file missing
            GraphLoadError         : graph failed to parse or compile
        """
        logger.info("Loading model from: %s", model_path)
        model = read_graph(model_path, environment)

        input_names = [name for name, _ in describe_ports(model.inputs)]
        problem = check_input_names(input_names)
        if problem:
            logger.warning("Unexpected inputs in %s: %s", model_path, problem)

        outputs = describe_ports(model.outputs)
        selected = find_embedding_output(outputs)
        if selected is None:
            logger.warning(
                "No token-embedding output found in %s (outputs: %s)",
                model_path,
                outputs,
            )
        else:
            logger.info(
                "Using output tensor '%s' (hidden size %d)", selected[0], selected[1]
            )

        try:
            compiled = environment.compile(model)
        except RuntimeError as exc:
            raise GraphLoadError(f"Failed to compile model {model_path}: {exc}") from exc

        return cls(str(model_path), compiled, input_names, selected)

    def run(self, encoded: EncodedInput) -> np.ndarray:
        """
        Execute one forward pass.

        Args:
            encoded : a single, unpadded token sequence

        Returns:
            np.ndarray of shape (seq_len, hidden_size); the batch
            dimension of 1 is dropped.
        """
        if self.output_name is None:
            raise InvalidModelShapeError(
                f"Model {self.model_path} has no (?, ?, hidden) output tensor"
            )

        infer_inputs = {
            "input_ids": np.array([encoded.input_ids], dtype=np.int64),
            "attention_mask": np.array([encoded.attention_mask], dtype=np.int64),
            "token_type_ids": np.array([encoded.token_type_ids], dtype=np.int64),
        }
        outputs = self._compiled_model(infer_inputs)
        token_embeddings = np.asarray(outputs[self.output_name])
        seq_len = token_embeddings.shape[1]
        return token_embeddings.reshape(seq_len, token_embeddings.shape[2])
