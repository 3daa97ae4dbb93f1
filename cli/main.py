"""
Command-line entry point for the movie recommendation agent.

Subcommands:
  chat    (default) one interactive recommendation session
  ingest  rebuild the Qdrant movie collection from the catalog CSV
  health  check connectivity to Qdrant and Postgres
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from cli.console import ConsoleIO
from db.ingest_movie import BATCH_SIZE, MAX_MOVIES, MOVIES_CSV_PATH, ingest_catalog
from db.postgres import check_postgres, create_pool
from db.qdrant import COLLECTION_NAME, check_qdrant, create_qdrant_client
from db.query_log import PostgresOutcomeRecorder
from db.vector_search import DEFAULT_RESULT_LIMIT, QdrantMovieRetriever
from implementation.classes.enums import MessageTone
from implementation.classes.session import DEFAULT_MAX_ATTEMPTS
from implementation.llms.generic_methods import create_openai_client
from implementation.llms.refinement_methods import OpenAIQueryRefiner, OpenAIQuestionGenerator
from implementation.misc.background import drain_background_tasks
from implementation.refinement_controller import (
    DEFAULT_PROBE_EXCHANGES,
    RefinementController,
    RefinementPolicy,
)

logger = logging.getLogger(__name__)

BANNER = r"""
  __  __            _          _                    _
 |  \/  | _____   _(_) ___    / \   __ _  ___ _ __ | |_
 | |\/| |/ _ \ \ / / |/ _ \  / _ \ / _` |/ _ \ '_ \| __|
 | |  | | (_) \ V /| |  __/ / ___ \ (_| |  __/ | | | |_
 |_|  |_|\___/ \_/ |_|\___|/_/   \_\__, |\___|_| |_|\__|
                                   |___/
"""


def setup_logging(debug: bool = False) -> None:
    """
    Send diagnostics to stderr so they never interleave with the conversation
    on stdout. WARNING and above unless --debug is given.
    """
    level = logging.DEBUG if debug else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    # Client libraries are chatty at DEBUG.
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="movie-agent",
        description="Conversational movie recommendations over a semantic movie catalog",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging on stderr")
    subparsers = parser.add_subparsers(dest="command")

    chat = subparsers.add_parser("chat", help="Start an interactive recommendation session (default)")
    _add_chat_arguments(chat)

    ingest = subparsers.add_parser("ingest", help="Embed the movie CSV into the Qdrant collection")
    ingest.add_argument("--csv", type=Path, default=MOVIES_CSV_PATH, help="Path to the movies CSV")
    ingest.add_argument("--collection", default=COLLECTION_NAME, help="Qdrant collection name")
    ingest.add_argument("--batch-size", type=int, default=BATCH_SIZE, help="Movies per upsert batch")
    ingest.add_argument("--max-movies", type=int, default=MAX_MOVIES, help="Maximum unique movies to load")

    subparsers.add_parser("health", help="Check connectivity to Qdrant and Postgres")
    return parser


def _add_chat_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--collection", default=COLLECTION_NAME, help="Qdrant collection name")
    parser.add_argument("--max-attempts", type=int, default=DEFAULT_MAX_ATTEMPTS,
                        help="Probing rounds before giving up")
    parser.add_argument("--probe-exchanges", type=int, default=DEFAULT_PROBE_EXCHANGES,
                        help="Clarifying questions per probing round")
    parser.add_argument("--results", type=int, default=DEFAULT_RESULT_LIMIT,
                        help="Movies shown per search")
    parser.add_argument("--ask-feedback-on-empty", action="store_true",
                        help="Ask for feedback even when a search finds nothing")
    parser.add_argument("--log-grace-seconds", type=float, default=5.0,
                        help="How long to wait for the outcome log write before exiting")


# ===============================
#           Commands
# ===============================

async def run_chat(args: argparse.Namespace) -> int:
    openai_client = create_openai_client()
    qdrant_client = create_qdrant_client()
    pool = create_pool()
    # wait=False: an unreachable Postgres must not delay the conversation;
    # the recorder logs the failure when it tries to write.
    await pool.open(wait=False)

    io = ConsoleIO()
    io.show(BANNER, MessageTone.QUESTION)
    io.show("Welcome to the Movie Recommendation Agent!", MessageTone.SUCCESS)

    controller = RefinementController(
        retriever=QdrantMovieRetriever(
            qdrant_client, openai_client, collection_name=args.collection, limit=args.results
        ),
        question_generator=OpenAIQuestionGenerator(openai_client),
        query_refiner=OpenAIQueryRefiner(openai_client),
        outcome_recorder=PostgresOutcomeRecorder(pool),
        io=io,
        policy=RefinementPolicy(
            max_attempts=args.max_attempts,
            probe_exchanges=args.probe_exchanges,
            skip_feedback_on_empty=not args.ask_feedback_on_empty,
        ),
    )
    try:
        result = await controller.run()
        logger.info("Session ended with outcome %s", result.outcome.value)
    finally:
        await drain_background_tasks(timeout=args.log_grace_seconds)
        await pool.close()
        await qdrant_client.close()
        await openai_client.close()
    return 0


async def run_ingest(args: argparse.Namespace) -> int:
    openai_client = create_openai_client()
    qdrant_client = create_qdrant_client()
    try:
        inserted = await ingest_catalog(
            qdrant_client,
            openai_client,
            csv_path=args.csv,
            collection_name=args.collection,
            batch_size=args.batch_size,
            max_movies=args.max_movies,
        )
    finally:
        await qdrant_client.close()
        await openai_client.close()
    print(f"Movies and embeddings added to Qdrant: {inserted}")
    return 0 if inserted > 0 else 1


async def health_check() -> dict[str, str]:
    """
    Check connectivity to every external service.

    Returns a dictionary with status for each service:
    - postgres: 'ok' or error message (checked via connection pool)
    - qdrant: 'ok' or error message
    """
    results = {}

    pool = create_pool()
    try:
        await pool.open(wait=False)
        results["postgres"] = await check_postgres(pool)
    except Exception as e:
        results["postgres"] = str(e)
    finally:
        await pool.close()

    try:
        qdrant_client = create_qdrant_client()
    except Exception as e:
        results["qdrant"] = str(e)
    else:
        results["qdrant"] = await check_qdrant(qdrant_client)
        await qdrant_client.close()

    return results


async def run_health(args: argparse.Namespace) -> int:
    results = await health_check()
    for service, status in results.items():
        print(f"{service}: {status}")
    return 0 if all(status == "ok" for status in results.values()) else 1


_COMMANDS = {
    "chat": run_chat,
    "ingest": run_ingest,
    "health": run_health,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        # Bare `movie-agent` starts a chat with default options.
        args = parser.parse_args([*argv, "chat"])

    setup_logging(debug=args.debug)

    try:
        return asyncio.run(_COMMANDS[args.command](args))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except EOFError:
        print("\n\nInput closed, goodbye!")
        return 0


if __name__ == "__main__":
    sys.exit(main())
