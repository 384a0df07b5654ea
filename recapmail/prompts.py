"""Instruction template shared by every AI provider, plus prompt presets."""

from __future__ import annotations

from typing import Dict, List, Tuple

SUMMARY_SYSTEM = (
    "You are an AI assistant that creates meeting summaries. "
    "Follow the user's instructions exactly for formatting and content focus."
)

SUMMARY_PROMPT = (
    'Please summarize the following meeting transcript according to these instructions: "{prompt}"'
    "\n\nTranscript:\n{transcript}"
)

PRESETS: Dict[str, Dict[str, str]] = {
    "executive": {
        "title": "Executive Summary",
        "prompt": "Summarize in bullet points for executives",
    },
    "action-items": {
        "title": "Action Items Only",
        "prompt": "Highlight only action items and deadlines",
    },
    "decisions": {
        "title": "Decisions & Next Steps",
        "prompt": "Focus on decisions made and next steps",
    },
}


def build_messages(transcript: str, prompt: str) -> Tuple[str, str]:
    """Return ``(system, user)`` messages for a summary request.

    Prompt and transcript are embedded verbatim: no escaping, no truncation.
    """

    return SUMMARY_SYSTEM, SUMMARY_PROMPT.format(prompt=prompt, transcript=transcript)


def build_single_prompt(transcript: str, prompt: str) -> str:
    """Flatten the messages for providers without a system role."""

    system, user = build_messages(transcript, prompt)
    return f"{system}\n\n{user}"


def resolve_preset(name: str) -> str:
    try:
        return PRESETS[name]["prompt"]
    except KeyError:
        raise KeyError(f"Unknown prompt preset: {name}") from None


def list_presets() -> List[str]:
    return list(PRESETS.keys())
