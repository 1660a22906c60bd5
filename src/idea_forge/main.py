"""Entrypoint: brainstorm, question and validate business ideas from the command line."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .config import load_settings
from .llm.catalog import default_model, list_models
from .llm.registry import ProviderRegistry
from .llm.router import LLMRouter
from .llm.types import GenerationError, GenerationRequest
from .parsers import ParseError
from .use_cases import (
    ask_socratic_question,
    describe_failure,
    generate_ideas,
    stream_ideas,
    validate_demand,
)
from .utils import json_dumps
from .validators import GENERATION_TYPES, SOCRATIC_MODES, RequestValidationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Brainstorm and validate business ideas with LLMs")
    parser.add_argument("--settings", default="config/settings.yaml", help="Path to settings.yaml")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("models", help="List supported models and their availability")

    gen = subparsers.add_parser("generate", help="Send a raw prompt to a model")
    gen.add_argument("prompt")
    gen.add_argument("--model")
    gen.add_argument("--system")
    gen.add_argument("--temperature", type=float)
    gen.add_argument("--max-tokens", type=int)
    gen.add_argument("--stream", action="store_true")

    ideas = subparsers.add_parser("ideas", help="Generate business ideas")
    ideas.add_argument("interests")
    ideas.add_argument("--type", dest="generation_type", choices=GENERATION_TYPES, default="trending")
    ideas.add_argument("--model")
    ideas.add_argument("--stream", action="store_true")

    ask = subparsers.add_parser("ask", help="Ask for the next Socratic question")
    ask.add_argument("topic")
    ask.add_argument("--mode", choices=SOCRATIC_MODES, default="brainstorm")
    ask.add_argument("--history", help="JSON file with [{role, content}] messages")
    ask.add_argument("--model")

    validate = subparsers.add_parser("validate", help="Validate whether a demand is real")
    validate.add_argument("demand")
    validate.add_argument("--model")
    return parser


def _emit(payload: Any) -> None:
    print(json_dumps(payload))


def _load_history(path: Optional[str]) -> List[Dict[str, Any]]:
    if not path:
        return []
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def _run_generate(router: LLMRouter, config: Dict[str, Any], args: argparse.Namespace) -> None:
    llm_cfg = config["llm"]
    request = GenerationRequest(
        prompt=args.prompt,
        model=args.model or default_model(config),
        system_prompt=args.system,
        temperature=args.temperature if args.temperature is not None else float(llm_cfg["temperature"]),
        max_tokens=args.max_tokens if args.max_tokens is not None else int(llm_cfg["max_tokens"]),
    )
    if not args.stream:
        print(router.generate_with_retry(request))
        return
    fragments = router.generate_stream(request)
    try:
        for fragment in fragments:
            sys.stdout.write(fragment)
            sys.stdout.flush()
    finally:
        fragments.close()
    sys.stdout.write("\n")


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)
    command = args.command or "models"

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_settings(args.settings)
    registry = ProviderRegistry(overrides=config.get("providers"))
    router = LLMRouter(config=config, registry=registry)

    try:
        if command == "models":
            _emit(list_models(registry, config))
        elif command == "generate":
            _run_generate(router, config, args)
        elif command == "ideas" and args.stream:
            for event in stream_ideas(router, config, args.interests, args.generation_type, args.model):
                _emit(event)
        elif command == "ideas":
            _emit(generate_ideas(router, config, args.interests, args.generation_type, args.model))
        elif command == "ask":
            history = _load_history(args.history)
            _emit(ask_socratic_question(router, config, args.mode, args.topic, history, args.model))
        elif command == "validate":
            _emit(validate_demand(router, config, args.demand, args.model))
    except RequestValidationError as exc:
        _emit(exc.to_dict())
        return 2
    except (GenerationError, ParseError) as exc:
        logging.getLogger(__name__).error("%s failed: %s", command, exc)
        _emit({"error": describe_failure(exc)})
        return 1
    except ValueError as exc:
        _emit({"error": str(exc)})
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
