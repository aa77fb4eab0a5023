"""Command-line entrypoint for generating and browsing courses."""
from __future__ import annotations

import argparse
import json
import sys
from typing import TextIO

from .application.bootstrap import AppServices, initialize_app_services
from .application.context import AppContext
from .application.session import LlmSessionError
from .config import load_config
from .domain.course import COURSE_LEVELS
from .domain.events import (
    CompleteEvent,
    CourseStreamEvent,
    DescriptionEvent,
    ErrorEvent,
    SentenceEvent,
    ThinkingEvent,
    TitleEvent,
)
from .integrations.llm_client import LlmClientError, LlmEndpoint
from .logging_config import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="course-studio",
        description="Generate Chinese-English practice courses with an OpenAI-compatible LLM.",
    )
    parser.add_argument("--base-url", default="", help="Override the LLM base URL.")
    parser.add_argument("--api-key", default="", help="Override the LLM API key.")
    parser.add_argument("--model", default="", help="Override the LLM model name.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Stream a new course.")
    generate.add_argument("topic", help="Course topic.")
    generate.add_argument("--level", choices=COURSE_LEVELS, default=None)
    generate.add_argument("--count", type=int, default=None, help="Number of sentences.")
    generate.add_argument(
        "--show-thinking",
        action="store_true",
        help="Print model reasoning as it streams.",
    )
    generate.add_argument("--save", action="store_true", help="Save the finished course.")
    generate.add_argument("--json", action="store_true", help="Print the finished course as JSON.")

    subparsers.add_parser("courses", help="List saved courses.")
    subparsers.add_parser("test-connection", help="Check the selected LLM endpoint.")
    return parser


def render_event(event: CourseStreamEvent, out: TextIO, *, show_thinking: bool = False) -> None:
    if isinstance(event, ThinkingEvent):
        if show_thinking:
            out.write(f"[{event.progress:>3.0f}%] thinking: {event.text[-120:]}\n")
    elif isinstance(event, TitleEvent):
        out.write(f"[{event.progress:>3.0f}%] title: {event.text}\n")
    elif isinstance(event, DescriptionEvent):
        out.write(f"[{event.progress:>3.0f}%] description: {event.text}\n")
    elif isinstance(event, SentenceEvent):
        sentence = event.sentence
        out.write(
            f"[{event.progress:>3.0f}%] {sentence.chinese} | {sentence.english} "
            f"{sentence.phonetic} ({sentence.difficulty})\n"
        )
    elif isinstance(event, CompleteEvent):
        out.write(
            f"[{event.progress:>3.0f}%] complete: {event.course.title} "
            f"({len(event.course.sentences)} sentences)\n"
        )
    elif isinstance(event, ErrorEvent):
        out.write(f"error: {event.message}\n")
    out.flush()


def _apply_endpoint_overrides(args: argparse.Namespace, services: AppServices) -> None:
    if not (args.base_url or args.api_key or args.model):
        return
    current = services.settings_service.session
    base = current.endpoint if current is not None else None
    base_url = args.base_url or (base.base_url if base else "")
    if not base_url:
        raise LlmSessionError("--api-key/--model need a base URL (--base-url or LLM_BASE_URL).")
    settings_service = services.settings_service
    settings_service.use_endpoint(
        LlmEndpoint(
            base_url=base_url,
            api_key=args.api_key or (base.api_key if base else ""),
            model=args.model or (base.model if base else "") or "gpt-3.5-turbo",
            timeout_seconds=settings_service.timeout_seconds,
            temperature=settings_service.temperature,
            request_thinking=settings_service.request_thinking,
        )
    )


def _run_generate(args: argparse.Namespace, context: AppContext, out: TextIO) -> int:
    service = context.course_service
    run = service.stream_course(args.topic, level=args.level, sentence_count=args.count)
    for event in run:
        render_event(event, out, show_thinking=args.show_thinking)
    if run.error is not None:
        return 1
    course = run.course
    if course is None:
        out.write("error: the stream ended before the course was complete.\n")
        return 2
    if args.json:
        out.write(json.dumps(course.to_dict(), ensure_ascii=False, indent=2) + "\n")
    if args.save:
        saved = service.save_course(course, topic=args.topic, level=args.level)
        out.write(
            f"saved course id={saved.id} lessons={saved.total_lessons} "
            f"sentences={saved.total_sentences}\n"
        )
    return 0


def _run_courses(context: AppContext, out: TextIO) -> int:
    courses = context.course_service.list_courses()
    if not courses:
        out.write("No saved courses.\n")
        return 0
    for course in courses:
        out.write(
            f"{course.id}\t{course.name}\t{course.difficulty}\t"
            f"lessons={course.total_lessons}\tsentences={course.total_sentences}\n"
        )
    return 0


def _run_test_connection(context: AppContext, out: TextIO) -> int:
    session = context.settings_service.require_session()
    connected = session.check_connection()
    out.write("connected\n" if connected else "connection failed\n")
    return 0 if connected else 1


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    args = _build_parser().parse_args(argv)
    out = out or sys.stdout
    config = load_config()
    logger = setup_logging(config)
    logger.info("Starting course studio: command=%s", args.command)
    logger.info("Log file: %s", config.log_file)

    context = AppContext(config=config, logger=logger)
    try:
        services = initialize_app_services(config=config, logger=logger)
        context.bind_services(services)
        _apply_endpoint_overrides(args, services)
        if args.command == "generate":
            return _run_generate(args, context, out)
        if args.command == "courses":
            return _run_courses(context, out)
        return _run_test_connection(context, out)
    except (ValueError, LlmSessionError, LlmClientError, RuntimeError) as exc:
        logger.error("Command failed: %s", exc)
        print(f"COURSE_STUDIO_FAILED: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
