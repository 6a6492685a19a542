"""
text-embedder -- Command Line Interface
=========================================
Entry point for embedding and validating models from the shell.

Commands:
  embed     -- Embed one text and print the vector as JSON
  batch     -- Embed several texts (arguments or a file, one per line)
  validate  -- Validate the configured model / credential, print its dimension
  devices   -- List available OpenVINO hardware devices

Usage examples:
  python cli.py embed "Find the invoice number"
  python cli.py batch "first text" "second text"
  python cli.py batch --file queries.txt --progress
  python cli.py validate
  python cli.py --config my_settings.yaml devices

Design notes:
  - Uses argparse from the standard library.
  - Settings come from configs/settings.yaml (override with --config);
    the OpenAI key from the OPENAI_API_KEY environment variable.
  - One InferenceEnvironment is created per process and closed on exit.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from text_embedder.config import EmbedderSettings
from text_embedder.embeddings.embedder import Embedder, EmbedResult
from text_embedder.errors import EmbedderError
from text_embedder.runtime.environment import InferenceEnvironment


def setup_logging(verbose: bool = False) -> None:
    """Configure root logger."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _report(result: EmbedResult) -> int:
    if not result.ok:
        print(f"ERROR ({result.code}): {result.error}", file=sys.stderr)
        return 1
    print(json.dumps(result.value))
    return 0


def _environment(settings: EmbedderSettings) -> Optional[InferenceEnvironment]:
    return None if settings.is_remote else InferenceEnvironment(device=settings.device)


def _read_texts(args: argparse.Namespace) -> List[str]:
    texts = list(args.texts)
    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            texts.extend(line.rstrip("\n") for line in f if line.strip())
    return texts


# ===================================================================
# Command handlers
# ===================================================================

def cmd_embed(args: argparse.Namespace, settings: EmbedderSettings) -> int:
    env = _environment(settings)
    try:
        embedder = Embedder.from_settings(settings, environment=env)
        return _report(embedder.embed(args.text))
    finally:
        if env is not None:
            env.close()


def cmd_batch(args: argparse.Namespace, settings: EmbedderSettings) -> int:
    texts = _read_texts(args)
    if not texts:
        print("ERROR: no texts given", file=sys.stderr)
        return 1
    env = _environment(settings)
    try:
        embedder = Embedder.from_settings(settings, environment=env)
        result = embedder.batch_embed(texts, show_progress=args.progress)
        logging.info("Embedded %d texts", len(texts))
        return _report(result)
    finally:
        if env is not None:
            env.close()


def cmd_validate(args: argparse.Namespace, settings: EmbedderSettings) -> int:
    if settings.is_remote:
        result = Embedder.validate_remote_model(
            settings.openai_model,
            settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
        return _report(result)
    with InferenceEnvironment(device=settings.device) as env:
        return _report(Embedder.validate_model(settings.model_path, env))


def cmd_devices(args: argparse.Namespace, settings: EmbedderSettings) -> int:
    """List available OpenVINO devices."""
    print(f"\n{'='*60}")
    print("OpenVINO Device Discovery")
    print(f"{'='*60}\n")
    with InferenceEnvironment(device=settings.device) as env:
        devices = env.list_devices()
        if devices:
            for d in devices:
                name = env.device_properties(d).get("FULL_DEVICE_NAME", "")
                marker = "*" if d == env.device else " "
                print(f" {marker}{d:8s}  {name}")
        else:
            print("  No devices found.")
    print(f"\n{'='*60}")
    return 0


# ===================================================================
# Argument parser
# ===================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="text-embedder",
        description=(
            "Compute text embeddings with a local OpenVINO model "
            "or the OpenAI embeddings API."
        ),
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to settings YAML (default: configs/settings.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # -- embed --
    p_embed = subparsers.add_parser("embed", help="Embed a single text")
    p_embed.add_argument("text", type=str, help="Text to embed")
    p_embed.set_defaults(func=cmd_embed)

    # -- batch --
    p_batch = subparsers.add_parser("batch", help="Embed several texts")
    p_batch.add_argument("texts", nargs="*", help="Texts to embed")
    p_batch.add_argument(
        "--file",
        type=str,
        default=None,
        help="File with one text per line",
    )
    p_batch.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar (local models only)",
    )
    p_batch.set_defaults(func=cmd_batch)

    # -- validate --
    p_validate = subparsers.add_parser(
        "validate",
        help="Validate the configured model and print its embedding size",
    )
    p_validate.set_defaults(func=cmd_validate)

    # -- devices --
    p_devices = subparsers.add_parser(
        "devices",
        help="List available OpenVINO hardware devices",
    )
    p_devices.set_defaults(func=cmd_devices)

    return parser


# ===================================================================
# Main entry point
# ===================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=getattr(args, "verbose", False))

    if args.command is None:
        parser.print_help()
        return 0

    if args.config and not Path(args.config).exists():
        print(f"ERROR: settings file not found: {args.config}", file=sys.stderr)
        return 1
    settings = EmbedderSettings.load(args.config)

    try:
        return args.func(args, settings)
    except EmbedderError as exc:
        print(f"ERROR ({exc.status_code}): {exc.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        return 130
    except Exception as exc:
        logging.error("Command failed: %s", exc, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
