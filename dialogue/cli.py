"""
Command line entry point.

    python -m dialogue.cli chat
    python -m dialogue.cli score "What is my account balance?"
    python -m dialogue.cli validate corpus.json
    python -m dialogue.cli export corpus.json
"""

import argparse
import asyncio
import json
import logging
import sys

from config.settings import get_settings
from intents.corpus import CorpusUnavailable, CorpusValidationError, IntentCorpus
from intents.scorer import IntentScorer
from intents.sources import CorpusHandle, IntentCatalog, JsonConfigurationSource, build_source

from .orchestrator import ConversationOrchestrator, ConversationRequest, build_orchestrator

logger = logging.getLogger(__name__)


async def run_chat(orchestrator: ConversationOrchestrator, user_id: str):
    """Read messages from stdin until EOF or 'quit'."""
    session_id = None
    print("Type a message, or 'quit' to exit.")
    while True:
        try:
            line = await asyncio.to_thread(input, "you> ")
        except EOFError:
            break
        message = line.strip()
        if not message:
            continue
        if message.lower() in ("quit", "exit"):
            break

        response = await orchestrator.process_message(
            ConversationRequest(user_id=user_id, message=message, session_id=session_id)
        )
        session_id = response.session_id
        print(f"bot> {response.response}")
        logger.debug(json.dumps(response.to_dict()))

    if session_id:
        await orchestrator.end_session(session_id)


def cmd_chat(args) -> int:
    orchestrator = build_orchestrator(get_settings())
    if orchestrator.corpus_handle.is_degraded:
        logger.warning("No intent corpus loaded; every message will use the fallback intent")
    asyncio.run(run_chat(orchestrator, args.user))
    return 0


def cmd_score(args) -> int:
    settings = get_settings()
    handle = CorpusHandle(build_source(settings.corpus_path))
    corpus = handle.reload()
    scorer = IntentScorer.from_settings(settings)

    if args.explain:
        print(json.dumps(scorer.explain(args.utterance, corpus, args.topic), indent=2))
    else:
        print(json.dumps(scorer.score(args.utterance, corpus, args.topic).to_dict(), indent=2))
    return 0


def cmd_validate(args) -> int:
    source = JsonConfigurationSource(args.path)
    try:
        corpus = IntentCorpus.build(*source.load())
    except CorpusValidationError as e:
        for error in e.errors:
            print(f"ERROR: {error}")
        return 1
    except CorpusUnavailable as e:
        print(f"ERROR: {e}")
        return 1
    print(f"OK: {len(corpus.intents)} intents, {len(corpus.topics)} topics")
    return 0


def cmd_export(args) -> int:
    data = IntentCatalog().export_config()
    with open(args.path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.info(f"Default corpus written to {args.path}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Intent resolution and dialogue engine")
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    subparsers = parser.add_subparsers(dest="command", required=True)

    chat = subparsers.add_parser("chat", help="Interactive conversation")
    chat.add_argument("--user", default="cli-user", help="User id for the session")
    chat.set_defaults(func=cmd_chat)

    score = subparsers.add_parser("score", help="Score a single utterance")
    score.add_argument("utterance")
    score.add_argument("--topic", default=None, help="Restrict scoring to a topic")
    score.add_argument("--explain", action="store_true", help="Show per-intent scores")
    score.set_defaults(func=cmd_score)

    validate = subparsers.add_parser("validate", help="Validate a corpus JSON file")
    validate.add_argument("path")
    validate.set_defaults(func=cmd_validate)

    export = subparsers.add_parser("export", help="Write the built-in corpus as JSON")
    export.add_argument("path")
    export.set_defaults(func=cmd_export)

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level or get_settings().log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
