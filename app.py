#!/usr/bin/env python3
"""
Command-line runner for StoryStream
Topic -> stories -> script -> voiceover / video / thumbnail -> publish
"""

import argparse
import asyncio
import logging
import sys

from config import settings
from generation import CredentialGate, ConsoleCredentialHost, GenerationService, RequestExecutor
from generation.models import Tone
from pipeline import Pipeline


def build_pipeline(interactive: bool = True) -> Pipeline:
    host = ConsoleCredentialHost(initial_credential=settings.google_api_key) if interactive else None
    gate = CredentialGate(host=host)
    service = GenerationService(executor=RequestExecutor(gate=gate), settings=settings)
    return Pipeline(service=service, settings=settings)


def print_progress(message: str, fraction: float):
    print(f"[{fraction * 100:5.1f}%] {message}")


def print_summary(result: dict):
    story = result.get("story")
    script = result.get("script")
    if story:
        print(f"Story:     {story.id} ({story.title})")
    if script:
        print(f"Script:    {len(script.content)} chars, tone '{script.tone.value}'")
    for kind, asset in (result.get("assets") or {}).items():
        if asset is None:
            print(f"{kind:<10} missing")
        else:
            print(f"{kind:<10} {asset.mime_type}, {asset.size_bytes} bytes")

    if result["status"] == "success":
        print(result["publish_result"].message)
    else:
        print(f"Failed: {result.get('error')}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Turn a topic into a narrated short with generated assets")
    parser.add_argument("--topic", default="backup horror stories", help="Story search topic")
    parser.add_argument(
        "--tone",
        choices=[tone.value for tone in Tone],
        default=settings.default_tone,
        help="Script tone",
    )
    parser.add_argument(
        "--no-prompt",
        action="store_true",
        help="Never prompt for a new API key when the current one is rejected",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    pipeline = build_pipeline(interactive=not args.no_prompt)
    result = asyncio.run(pipeline.run(args.topic, args.tone, progress_callback=print_progress))
    print_summary(result)
    return 0 if result["status"] == "success" else 1


if __name__ == "__main__":
    sys.exit(main())
