"""
OpenVINO Inference Environment
===============================
Owns the process-wide OpenVINO ``Core`` and the choice of inference device.

The runtime wants a single ``Core`` per process.  Instead of hiding it in a
module global, an ``InferenceEnvironment`` is created once at start-up (the
CLI does this in ``main``) and handed to every local ``Embedder``.  It can be
used as a context manager so that teardown is explicit:

    with InferenceEnvironment(device="CPU") as env:
        embedder = Embedder.local("model.onnx", "vocab.txt", env)
        ...

Devices:
    CPU   -- always available, baseline performance
    GPU   -- Intel integrated GPU (iGPU)
    NPU   -- Neural Processing Unit on Meteor Lake+
    AUTO  -- OpenVINO picks the best available device
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import openvino as ov

logger = logging.getLogger(__name__)

DEFAULT_DEVICE = "CPU"


class InferenceEnvironment:
    """
    Process-level OpenVINO runtime plus device selection.

    Usage::

        env = InferenceEnvironment()
        env.list_devices()              # ['CPU', 'GPU']
        compiled = env.compile(env.read_model("model.onnx"))
        env.close()
    """

    def __init__(self, device: str = DEFAULT_DEVICE, core=None):
        """
        Args:
            device : preferred device string; falls back to CPU if absent
            core   : an existing ``openvino.Core`` (a new one is created if None)
        """
        self._core = core if core is not None else ov.Core()
        self._devices: List[str] = list(self._core.available_devices)
        logger.info("OpenVINO devices: %s", self._devices)
        self.device = self.select(device)

    @property
    def core(self):
        """Access the underlying OpenVINO Core instance."""
        if self._core is None:
            raise RuntimeError("InferenceEnvironment has been closed")
        return self._core

    def list_devices(self) -> List[str]:
        """Return a list of available device strings (e.g. ['CPU', 'GPU'])."""
        return list(self._devices)

    def select(self, preferred: str = DEFAULT_DEVICE) -> str:
        """
        Select an inference device.

        If the preferred device is available, return it.  Otherwise fall
        back to CPU.  ``AUTO`` is always accepted.
        """
        if preferred.upper() == "AUTO":
            logger.info("Selected device: AUTO (available devices: %s)", self._devices)
            return "AUTO"

        if preferred in self._devices:
            logger.info("Selected device: %s", preferred)
            return preferred

        if "CPU" in self._devices:
            logger.warning(
                "Preferred device '%s' not available (have: %s). Falling back to CPU.",
                preferred,
                self._devices,
            )
            return "CPU"

        logger.error(
            "No OpenVINO devices available.  Returning '%s' anyway.", preferred
        )
        return preferred

    def read_model(self, model_path: str):
        """Parse a model graph (ONNX or OpenVINO IR) without compiling it."""
        return self.core.read_model(model=str(Path(model_path)))

    def compile(self, model, device: Optional[str] = None):
        """Compile a parsed model for ``device`` (default: the selected one)."""
        return self.core.compile_model(model=model, device_name=device or self.device)

    def device_properties(self, device: str) -> Dict[str, str]:
        """
        Return known properties for a device (name, architecture, etc.).

        Used by the ``cli.py devices`` command.
        """
        props: Dict[str, str] = {}
        for key in (
            "FULL_DEVICE_NAME",
            "DEVICE_ARCHITECTURE",
            "OPTIMAL_NUMBER_OF_INFER_REQUESTS",
        ):
            try:
                props[key] = str(self.core.get_property(device, key))
            except RuntimeError as exc:
                logger.debug("Property %s unavailable on %s: %s", key, device, exc)
        return props

    def close(self) -> None:
        """Release the Core.  The environment cannot be used afterwards."""
        if self._core is not None:
            logger.debug("Releasing OpenVINO Core")
        self._core = None

    def __enter__(self) -> "InferenceEnvironment":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
