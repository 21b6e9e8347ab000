from __future__ import annotations

import re
from typing import List, Sequence

DEFAULT_SESSION_NAME = "New Chat"
MAX_SESSION_NAME_LEN = 60

MENTOR_PROMPT = (
    "You are an AI mentor for Level Up, a management development platform. "
    "You help managers apply management concepts to real workplace situations. "
    "Be practical, supportive, and reference specific Level Up content when relevant. "
    "Keep responses conversational and actionable."
)


def build_system_prompt(
    *,
    completed_titles: Sequence[str],
    catalog_titles: Sequence[str],
    max_titles: int = 40,
) -> str:
    lines: List[str] = [MENTOR_PROMPT]
    if catalog_titles:
        shown = list(catalog_titles)[:max_titles]
        lines.append("\nLevel Up chapters available:\n" + "\n".join(f"- {t}" for t in shown))
    if completed_titles:
        lines.append(
            "\nChapters this manager has completed:\n" + "\n".join(f"- {t}" for t in completed_titles)
        )
    else:
        lines.append("\nThis manager has not completed any chapters yet.")
    return "\n".join(lines)


def build_title_prompt(first_message: str) -> str:
    snippet = (first_message or "").strip()
    if len(snippet) > 500:
        snippet = snippet[:499] + "…"
    return (
        f'Generate a very short (2-4 words) title for a chat that starts with: "{snippet}". '
        "Return only the title, no quotes, no punctuation."
    )


_STRIP_CHARS = " \t\r\n\"'`“”‘’.,;:!?"
_TITLE_LABEL = re.compile(r"^title\s*[:\-]?\s+", re.IGNORECASE)


def clean_title(raw: str) -> str:
    """Normalize an LLM-proposed title; falls back to the default session name."""
    first_line = next((ln for ln in (raw or "").splitlines() if ln.strip()), "")
    title = re.sub(r"\s+", " ", first_line).strip(_STRIP_CHARS)
    title = _TITLE_LABEL.sub("", title).strip(_STRIP_CHARS)
    if len(title) > MAX_SESSION_NAME_LEN:
        title = title[:MAX_SESSION_NAME_LEN].rstrip()
    return title or DEFAULT_SESSION_NAME
