"""Instruction builders for the vision, generation and revision model calls.

Every function here is pure: typed inputs in, instruction text out.
"""
from __future__ import annotations

from typing import List, Optional

from app.schemas.prompts import UserInputs, VisualStyleCues

CAMERA_ANGLES = (
    "Wide Establishing Shot",
    "Medium Shot",
    "Close-Up Portrait",
    "Low-Angle Dramatic",
    "High-Angle Overview",
    "Dutch Angle",
)

FORBIDDEN_WORDS = (
    "ethereal",
    "dreamlike",
    "magical",
    "otherworldly",
    "surreal",
    "breathtaking",
    "whimsical",
    "fantastical",
    "enchanted",
    "mystical",
)

PROMPT_WORD_RANGE = (70, 120)

# Used when the reference analysis was dropped and every concept field is blank.
NO_CONTEXT_DIRECTIVE = (
    "(No user inputs and no usable visual reference. Invent one plausible subject and "
    "environment, then write distinct, grounded cinematic shots of that scene in the "
    "default photorealistic register.)"
)

VISION_ANALYSIS_PROMPT = """You are a visual aesthetic analyst reviewing a moodboard. Treat ALL of the provided reference images as ONE moodboard and synthesize the single visual language they share.

IMPORTANT:
- Do NOT describe the images one by one. Describe only what they have in common.
- Do NOT identify specific subjects, people, faces, brands, or locations.
- Focus on abstract, transferable qualities: colour temperature and contrast, light direction and hardness, texture, grain, lens character, framing habits, atmosphere.
- Write so the result could inspire an unrelated scene shot in the same style.

Return a JSON object with exactly these fields:
{
  "description": "A 200-300 word synthesis of the shared visual language: colour mood, light quality, compositional energy, texture, atmosphere and cinematic genre",
  "hexPalette": ["#XXXXXX", "#XXXXXX", "#XXXXXX", "#XXXXXX", "#XXXXXX"],
  "cinematicKeywords": ["2-6 word phrase", "..."]
}

Rules for the fields:
- "hexPalette": exactly 5 colours in #RRGGBB form, ordered from most to least dominant across the set.
- "cinematicKeywords": 6-10 short phrases of 2-6 words each, in the vocabulary of a cinematographer (e.g. "sodium vapour spill", "shallow anamorphic focus"). Include only phrases that genuinely recur across multiple images.

Return ONLY valid JSON, nothing else."""


def build_vision_prompt() -> str:
    """Return the moodboard analysis instruction sent alongside the images."""

    return VISION_ANALYSIS_PROMPT


def build_system_prompt() -> str:
    """Return the cinematographer voice shared by generation and revision calls."""

    low, high = PROMPT_WORD_RANGE
    angles = " / ".join(CAMERA_ANGLES)
    forbidden = ", ".join(f'"{word}"' for word in FORBIDDEN_WORDS)
    example_labels = CAMERA_ANGLES[:2]
    return f"""You are an image prompt writer working in the mode of a senior Director of Photography briefing a camera operator. Your default register is photorealistic cinematic: grounded, specific, and technically informed. Think Denis Villeneuve's restraint and Roger Deakins' command of practical and available light. Never a fantasy novel.

PROMPT RULES:
1. Structure: [cinematic_descriptor] [subject+action] [environment] [lighting_details] [camera_specs]
2. Length: {low}-{high} words per prompt. Use the full range; density earns quality.
3. The first 5-10 words carry the most weight. Open with the strongest cinematic descriptor.
4. Always name the lens (35mm, 85mm, 28mm, anamorphic, etc.), the depth of field, and the specific lighting quality (colour temperature, direction, practical source, hardness).
5. Use concrete, active, specific language. No vague adjectives.
6. No negative prompts. No prompt weights.
7. Default style is photorealistic cinematic unless the user inputs explicitly ask for something else.
8. Assign each prompt a different camera angle from this list, one angle per prompt, no repeats:
   {angles}

FORBIDDEN LANGUAGE (never use unless the user's own words contain them):
  {forbidden}
Replace these with specific photographic or emotional language instead.

LENS AND LIGHTING VOCABULARY TO DRAW FROM:
  Lens: 21mm wide, 35mm standard, 50mm natural, 85mm portrait, 135mm compressed, anamorphic 2.39:1, tilt-shift
  Light: overcast diffuse, tungsten practical, sodium vapour, late golden hour side-rake, HMI through diffusion,
         bounce from concrete, chiaroscuro, motivated fill, fluorescent green-shift, push-processed underexposure

WHEN A VISUAL REFERENCE IS PROVIDED:
- It governs colour palette, light quality, and atmospheric tone only.
- Subject, story, and environment come from the user's inputs.
- Only when the user inputs are entirely empty, take subject and environment from the visual reference description.
- Treat the visual reference as the colour grade and lighting template, not the content.

OUTPUT: Return ONLY valid JSON in this exact format:
{{
  "prompts": [
    {{ "label": "{example_labels[0]}", "prompt": "..." }},
    {{ "label": "{example_labels[1]}", "prompt": "..." }}
  ]
}}"""


def _visual_reference_lines(cues: VisualStyleCues) -> List[str]:
    lines = [
        cues.description,
        f"Color Palette: {', '.join(cues.hex_palette)}",
    ]
    if cues.cinematic_keywords:
        lines.append(f"Cinematic Keywords: {' | '.join(cues.cinematic_keywords)}")
    return lines


def build_generation_message(
    user_inputs: UserInputs,
    prompt_count: int,
    visual_style_cues: Optional[VisualStyleCues] = None,
) -> str:
    """Assemble the user turn for the batch generation call."""

    lines: List[str] = [f"Generate exactly {prompt_count} image generation prompts."]

    if visual_style_cues is not None:
        lines.append("")
        lines.append(
            "=== VISUAL REFERENCE (PRIMARY visual source: colour, light, atmosphere) ==="
        )
        lines.extend(_visual_reference_lines(visual_style_cues))
        lines.append(
            "Use the cinematic keyword phrases directly in the prompts, verbatim where they fit."
        )

    filled = user_inputs.filled_fields()
    lines.append("")
    lines.append("=== USER INPUTS (subject, story and environment) ===")
    for label, value in filled:
        lines.append(f"{label}: {value}")

    if not filled:
        if visual_style_cues is not None:
            lines.append(
                "(No user inputs provided. Derive the subject and environment from the visual reference description.)"
            )
        else:
            lines.append(NO_CONTEXT_DIRECTIVE)

    if visual_style_cues is None:
        lines.append("")
        if filled:
            lines.append("=== VISUAL REFERENCE: None. Generate the prompts from the user inputs alone. ===")
        else:
            lines.append("=== VISUAL REFERENCE: None. ===")

    return "\n".join(lines)


def build_revision_message(
    prompt: str,
    label: str,
    revision_note: str,
    user_inputs: UserInputs,
    visual_style_cues: Optional[VisualStyleCues] = None,
) -> str:
    """Assemble the user turn for revising a single prompt.

    The original prompt and the instruction come first; the scene context
    follows, marked as fixed unless the instruction requires otherwise.
    """

    lines: List[str] = [
        "Revise the following image generation prompt according to the revision instruction.",
        'Return ONLY valid JSON: { "prompt": "..." }',
    ]
    if label.strip():
        lines.append(f"Shot label: {label}")
    lines.extend(
        [
            "",
            "=== ORIGINAL PROMPT ===",
            prompt,
            "",
            "=== REVISION INSTRUCTION ===",
            revision_note,
            "",
            "=== ORIGINAL SCENE CONTEXT (do not change unless the instruction requires it) ===",
        ]
    )
    for field_label, value in user_inputs.filled_fields():
        lines.append(f"{field_label}: {value}")

    if visual_style_cues is not None:
        lines.append("")
        lines.append("=== VISUAL REFERENCE (from user-selected images) ===")
        lines.extend(_visual_reference_lines(visual_style_cues))

    return "\n".join(lines)


__all__ = [
    "CAMERA_ANGLES",
    "FORBIDDEN_WORDS",
    "PROMPT_WORD_RANGE",
    "NO_CONTEXT_DIRECTIVE",
    "VISION_ANALYSIS_PROMPT",
    "build_vision_prompt",
    "build_system_prompt",
    "build_generation_message",
    "build_revision_message",
]
