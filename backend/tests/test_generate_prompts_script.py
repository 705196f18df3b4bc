"""Tests for the generate_prompts operator script."""
from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

pytestmark = pytest.mark.anyio("asyncio")

from app.core import config
from app.core.config import Settings

SCRIPT = Path(__file__).resolve().parents[1] / "bin" / "generate_prompts.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("generate_prompts", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def script(monkeypatch: pytest.MonkeyPatch, settings: Settings):
    monkeypatch.setattr(config, "get_settings", lambda: settings)
    return _load_script()


async def test_generates_and_revises_one_prompt(script, gateway, settings: Settings, tmp_path: Path, capsys) -> None:
    image = tmp_path / "ref.png"
    image.write_bytes(b"\x89PNG fake")
    gateway.script(
        settings.vision_model,
        {
            "description": "Cold dusk.",
            "hexPalette": ["#000000", "#111111", "#222222", "#333333", "#444444"],
            "cinematicKeywords": ["sodium vapour spill"],
        },
    )
    gateway.script(
        settings.prompt_model,
        {
            "prompts": [
                {"label": "Wide Establishing Shot", "prompt": "one"},
                {"label": "Medium Shot", "prompt": "two"},
                {"label": "Dutch Angle", "prompt": "three"},
            ]
        },
        {"prompt": "two, in the rain"},
    )

    code = await script.main(
        [
            "--storyline", "a lone detective searches an abandoned warehouse at night",
            "--count", "3",
            "--image-file", str(image),
            "--api-key", "sk-test",
            "--revise", "2",
            "--note", "make it rain",
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "Palette: #000000" in out
    assert "[2] Medium Shot (revised)\ntwo, in the rain" in out
    parts = gateway.calls_for(settings.vision_model)[0]["messages"][0]["content"]
    assert parts[0]["image_url"]["url"].startswith("data:image/png;base64,")


async def test_reports_validation_failure(script, gateway, capsys) -> None:
    code = await script.main(["--api-key", "sk-test", "--count", "3"])

    assert code == 1
    assert "Generation failed: Provide reference images" in capsys.readouterr().out
    assert gateway.requests == []


async def test_count_defaults_to_configured_value(
    script, gateway, settings: Settings, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    configured = settings.model_copy(update={"default_prompt_count": 3})
    monkeypatch.setattr(config, "get_settings", lambda: configured)
    gateway.script(
        settings.prompt_model,
        {
            "prompts": [
                {"label": "Wide Establishing Shot", "prompt": "one"},
                {"label": "Medium Shot", "prompt": "two"},
                {"label": "Dutch Angle", "prompt": "three"},
            ]
        },
    )

    code = await script.main(["--subject", "a night ferry", "--api-key", "sk-test"])

    assert code == 0
    assert "[3] Dutch Angle" in capsys.readouterr().out
    user_message = gateway.calls_for(settings.prompt_model)[0]["messages"][1]["content"]
    assert user_message.startswith("Generate exactly 3 image generation prompts.")
