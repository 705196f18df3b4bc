#!/usr/bin/env python3
"""Generate (and optionally revise) cinematic prompts from the terminal.

Reads OPENROUTER_API_KEY from backend/.env or environment unless --api-key is given.
"""
from __future__ import annotations

import argparse
import asyncio
import base64
import mimetypes
import os
import sys
from pathlib import Path


def _load_env() -> None:
    env_path = Path(__file__).resolve().parents[1] / ".env"
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding="utf-8").splitlines():
        if not line.strip() or line.strip().startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            os.environ.setdefault(k.strip(), v.strip())


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Write cinematic image prompts.")
    parser.add_argument("--storyline", default="", help="Storyline or concept.")
    parser.add_argument("--subject", default="", help="Main subject of the shots.")
    parser.add_argument("--environment", default="", help="Where the scene takes place.")
    parser.add_argument("--mood", default="", help="Mood or feeling.")
    parser.add_argument(
        "--count", type=int, help="Number of prompts (3-6); defaults to DEFAULT_PROMPT_COUNT."
    )
    parser.add_argument(
        "--image-url", action="append", default=[], help="Remote reference image URL."
    )
    parser.add_argument(
        "--image-file", action="append", default=[], help="Local reference image path."
    )
    parser.add_argument("--api-key", help="Gateway credential; defaults to OPENROUTER_API_KEY.")
    parser.add_argument("--revise", type=int, metavar="INDEX", help="Revise prompt INDEX (1-based).")
    parser.add_argument("--note", default="", help="Revision instruction used with --revise.")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    _load_env()
    args = parse_args(sys.argv[1:] if argv is None else argv)

    from app.core.config import get_settings
    from app.core.logging import configure_logging
    from app.schemas.prompts import InlineImage, ReferenceImage, UserInputs
    from app.services.errors import PromptPipelineError
    from app.services.pipeline import PromptPipelineService

    settings = get_settings()
    configure_logging(settings.log_level, stream=sys.stderr)
    api_key = args.api_key or settings.openrouter_api_key or ""
    prompt_count = args.count if args.count is not None else settings.default_prompt_count

    images = [ReferenceImage(url=url) for url in args.image_url]
    for raw_path in args.image_file:
        path = Path(raw_path).expanduser()
        mime_type, _ = mimetypes.guess_type(path.name)
        images.append(
            InlineImage(
                data=base64.b64encode(path.read_bytes()).decode("ascii"),
                mime_type=mime_type or "image/jpeg",
            )
        )
    user_inputs = UserInputs(
        storyline=args.storyline,
        subject=args.subject,
        environment=args.environment,
        mood=args.mood,
    )

    service = PromptPipelineService(settings)
    try:
        result = await service.generate(
            api_key=api_key,
            images=images,
            user_inputs=user_inputs,
            prompt_count=prompt_count,
        )
    except PromptPipelineError as exc:
        print(f"Generation failed: {exc.message}")
        return 1

    if result.visual_style_cues:
        cues = result.visual_style_cues
        print(f"Palette: {', '.join(cues.hex_palette)}")
        print(f"Keywords: {' | '.join(cues.cinematic_keywords)}\n")
    for index, item in enumerate(result.prompts, start=1):
        print(f"[{index}] {item.label}\n{item.prompt}\n")

    if args.revise is None:
        return 0
    index = args.revise - 1
    if not 0 <= index < len(result.prompts):
        print(f"No prompt #{args.revise} in this batch")
        return 2
    target = result.prompts[index]
    try:
        revised = await service.revise(
            api_key=api_key,
            prompt=target.prompt,
            label=target.label,
            revision_note=args.note,
            user_inputs=user_inputs,
            visual_style_cues=result.visual_style_cues,
        )
    except PromptPipelineError as exc:
        print(f"Revision failed: {exc.message}")
        return 1
    result = result.with_revised_prompt(index, revised)
    print(f"[{args.revise}] {target.label} (revised)\n{result.prompts[index].prompt}")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
