"""
Checks that the embedder's dependencies import and that the configured
model files (or the OpenAI key) are in place.

    python scripts/verify_setup.py [--config configs/settings.yaml]

Exits 1 if any required check fails.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from text_embedder.config import EmbedderSettings  # noqa: E402

logger = logging.getLogger("verify_setup")

# (import name, required)
PACKAGES = [
    ("numpy", True),
    ("openvino", True),
    ("transformers", True),
    ("yaml", True),
    ("tqdm", True),
    ("pytest", False),
]


def missing_packages() -> list:
    """Names of required packages that fail to import."""
    missing = []
    for module, required in PACKAGES:
        try:
            importlib.import_module(module)
        except ImportError:
            logger.warning("%s is not installed%s", module, "" if required else " (optional)")
            if required:
                missing.append(module)
    return missing


def missing_files(settings: EmbedderSettings) -> list:
    """Configured inputs the selected provider needs but cannot find."""
    if settings.is_remote:
        return [] if settings.openai_api_key else ["OPENAI_API_KEY"]
    return [
        f"{label}: {path or 'not configured'}"
        for label, path in (("model", settings.model_path), ("vocab", settings.vocab_path))
        if not path or not Path(path).exists()
    ]


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Verify the text-embedder setup")
    parser.add_argument("--config", default=None, help="Path to settings.yaml")
    args = parser.parse_args(argv)

    problems = missing_packages() + missing_files(EmbedderSettings.load(args.config))
    for problem in problems:
        logger.error("Missing %s", problem)
    if not problems:
        logger.info("Setup OK")
    return 1 if problems else 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    sys.exit(main())
