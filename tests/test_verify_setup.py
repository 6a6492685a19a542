from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

from text_embedder.config import EmbedderSettings

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "verify_setup.py"


@pytest.fixture(scope="module")
def verify_setup():
    spec = importlib.util.spec_from_file_location("verify_setup", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_local_files_present(verify_setup, model_path, vocab_path):
    settings = EmbedderSettings(model_path=str(model_path), vocab_path=str(vocab_path))
    assert verify_setup.missing_files(settings) == []


def test_local_files_missing(verify_setup, tmp_path, vocab_path):
    settings = EmbedderSettings(model_path=str(tmp_path / "nope.onnx"), vocab_path=str(vocab_path))
    assert verify_setup.missing_files(settings) == [f"model: {tmp_path / 'nope.onnx'}"]


def test_remote_needs_api_key(verify_setup):
    settings = EmbedderSettings(provider="openai", openai_model="openai/x", openai_api_key="")
    assert verify_setup.missing_files(settings) == ["OPENAI_API_KEY"]
    settings = EmbedderSettings(provider="openai", openai_model="openai/x", openai_api_key="k")
    assert verify_setup.missing_files(settings) == []


def test_main_reports_failure_for_missing_model(verify_setup, tmp_path, monkeypatch):
    config = tmp_path / "settings.yaml"
    config.write_text(
        f"embedder:\n  provider: local\n  model_path: {tmp_path / 'nope.onnx'}\n",
        encoding="utf-8",
    )
    monkeypatch.setattr(verify_setup, "missing_packages", lambda: [])
    assert verify_setup.main(["--config", str(config)]) == 1
