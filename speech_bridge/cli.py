"""Command-line front end for the speech bridge.

WHY: Operators need to check a model installation and an engine plugin
without writing a host application. The CLI drives the exact same
boundary a host uses (create, request, read/free buffer, destroy), so a
working CLI run means a working host integration.

HOW: argparse builds two subcommands, ``transcribe`` and ``diarize``.
Common flags build the create request; subcommand flags build the
request options. The response envelope is printed to stdout as JSON.
Status lines and logs go to stderr.

RULES:
- Every common flag defaults from the environment (see config.py)
- Exit code 0: ok envelope; 1: error envelope; 2: no session could be created
- stdout carries only the envelope JSON, so the CLI can be piped
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from speech_bridge import config
from speech_bridge.bridge import abi
from speech_bridge.bridge.errors import EngineUnavailableError
from speech_bridge.bridge.models import BridgeConfig, DiarizeOptions, TranscribeOptions
from speech_bridge.bridge.serialization import encode_config
from speech_bridge.core.assembler import SEGMENTS_ONLY, WORD_PREFERRED
from speech_bridge.engine.base import EngineFactory
from speech_bridge.engine.loader import resolve_engine_factory

EXIT_OK = 0
EXIT_ERROR_ENVELOPE = 1
EXIT_CREATE_FAILED = 2


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() lets tests inspect
    defaults without loading an engine.

    RULES:
    - Subcommand is required: transcribe or diarize
    - Positional: audio (WAV path)
    - --vocab is repeatable
    """
    parser = argparse.ArgumentParser(
        prog="speech-bridge",
        description="Run the speech bridge boundary against a local WAV file "
                    "and print the response envelope as JSON.",
    )

    parser.add_argument(
        "--asr-model-dir",
        default=config.ASR_MODEL_DIR,
        help="Directory holding the ASR models (env: SPEECH_BRIDGE_ASR_MODEL_DIR).",
    )
    parser.add_argument(
        "--diarization-model-dir",
        default=config.DIARIZATION_MODEL_DIR,
        help="Directory holding the diarization models "
             "(env: SPEECH_BRIDGE_DIARIZATION_MODEL_DIR).",
    )
    parser.add_argument(
        "--platform-major",
        type=int,
        default=None,
        help="Host platform major version (default: detected).",
    )
    parser.add_argument(
        "--engine",
        default=config.ENGINE_REFERENCE,
        help="Engine factory as 'module:callable' (env: SPEECH_BRIDGE_ENGINE).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    transcribe = subparsers.add_parser("transcribe", help="Transcribe a WAV file.")
    transcribe.add_argument("audio", help="Path to the WAV file.")
    transcribe.add_argument(
        "--vocab",
        action="append",
        default=[],
        help="Custom vocabulary term to boost. Can be specified multiple times.",
    )
    transcribe.add_argument(
        "--timestamps",
        choices=[WORD_PREFERRED, SEGMENTS_ONLY],
        default=WORD_PREFERRED,
        help="Word-level timestamps or segments only (default: %(default)s).",
    )
    transcribe.add_argument(
        "--language",
        default=None,
        help="Language hint, e.g. 'en'.",
    )

    diarize = subparsers.add_parser("diarize", help="Diarize a WAV file.")
    diarize.add_argument("audio", help="Path to the WAV file.")
    diarize.add_argument(
        "--speakers",
        type=int,
        default=None,
        help="Known number of speakers.",
    )

    return parser


def _options_bytes(args: argparse.Namespace) -> bytes:
    if args.command == "transcribe":
        options = TranscribeOptions(
            schema_version=config.SCHEMA_VERSION,
            language_hint=args.language,
            vocabulary=args.vocab,
            timestamps=args.timestamps,
        )
    else:
        options = DiarizeOptions(
            schema_version=config.SCHEMA_VERSION,
            speaker_count=args.speakers,
        )
    return options.model_dump_json(exclude_none=True).encode("utf-8")


def _summarize(envelope: dict) -> None:
    data = envelope["data"]
    if "turns" in data:
        speakers = sorted({turn["speaker"] for turn in data["turns"]})
        _status("Done: {} turns, {} speakers".format(len(data["turns"]), len(speakers)))
    else:
        _status("Done: {} segments, {} words (engine: {})".format(
            len(data["segments"]),
            len(data.get("words", [])),
            data["engine"],
        ))


def main(argv: Optional[List[str]] = None, engine_factory: Optional[EngineFactory] = None) -> int:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - engine_factory overrides --engine; tests pass a fake engine here
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.asr_model_dir:
        _status("Error: no ASR model directory (use --asr-model-dir or SPEECH_BRIDGE_ASR_MODEL_DIR)")
        return EXIT_CREATE_FAILED

    if engine_factory is None:
        try:
            engine_factory = resolve_engine_factory(args.engine)
        except EngineUnavailableError as e:
            _status("Error: {}".format(e.message))
            return EXIT_CREATE_FAILED

    platform_major = args.platform_major
    if platform_major is None:
        platform_major = config.detect_platform_major()

    create_request = BridgeConfig(
        schema_version=config.SCHEMA_VERSION,
        asr_model_dir=args.asr_model_dir,
        diarization_model_dir=args.diarization_model_dir,
        runtime_platform_major=platform_major,
    )

    _status("Loading engine...")
    try:
        with abi.open_session(encode_config(create_request), engine_factory) as handle:
            _status("Running {} on {}...".format(args.command, args.audio))
            request = abi.transcribe if args.command == "transcribe" else abi.diarize
            ptr, length = request(handle, args.audio, _options_bytes(args))
            try:
                payload = abi.read_buffer(ptr, length)
            finally:
                abi.free_buffer(ptr, length)
    except RuntimeError as e:
        _status("Error: {} (see log above)".format(e))
        return EXIT_CREATE_FAILED

    print(payload.decode("utf-8"))

    envelope = json.loads(payload)
    if not envelope["ok"]:
        error = envelope["error"]
        _status("Error [{}]: {}".format(error["code"], error["message"]))
        return EXIT_ERROR_ENVELOPE

    _summarize(envelope)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
