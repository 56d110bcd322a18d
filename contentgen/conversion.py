"""Provider-agnostic helpers shared by every adapter."""
import math
from typing import Any

from .types import Content, FinishReason

CHARS_PER_TOKEN = 4


def _entry_text(entry: Any) -> str:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, Content):
        parts = entry.parts
        return " ".join(p.text or "" for p in parts)
    if isinstance(entry, dict):
        parts = entry.get("parts") or []
        return " ".join((p.get("text") or "") if isinstance(p, dict) else "" for p in parts)
    return ""


def _entry_role(entry: Any) -> str:
    if isinstance(entry, Content):
        return entry.role
    if isinstance(entry, dict):
        return entry.get("role", "user")
    return "user"


def flatten_to_text(contents: Any) -> str:
    """Collapse canonical contents into one string.

    A raw string is returned as-is. A sequence has each entry's parts joined
    with a single space, and the entries joined with a single space. Any
    other shape yields an empty string.
    """
    if isinstance(contents, str):
        return contents
    if isinstance(contents, (list, tuple)):
        return " ".join(_entry_text(entry) for entry in contents)
    return ""


def to_role_messages(contents: Any, assistant_role: str = "assistant") -> list[dict]:
    """Convert canonical contents into ``{"role", "content"}`` chat messages.

    ``user`` stays ``user``; every other canonical role becomes
    ``assistant_role``. No system message is synthesised here.
    """
    if isinstance(contents, str):
        return [{"role": "user", "content": contents}]
    if isinstance(contents, (list, tuple)):
        messages = []
        for entry in contents:
            role = "user" if _entry_role(entry) == "user" else assistant_role
            messages.append({"role": role, "content": _entry_text(entry)})
        return messages
    return []


def _entry_parts(entry: Any) -> list[dict]:
    if isinstance(entry, Content):
        return [{"text": p.text or ""} for p in entry.parts]
    if isinstance(entry, dict):
        return [
            {"text": (p.get("text") or "") if isinstance(p, dict) else ""}
            for p in entry.get("parts") or []
        ]
    return [{"text": _entry_text(entry)}]


def to_native_contents(contents: Any) -> list[dict]:
    """Gemini-native ``[{role, parts: [{text}]}]`` form; parts are kept separate."""
    if isinstance(contents, str):
        return [{"role": "user", "parts": [{"text": contents}]}]
    if isinstance(contents, (list, tuple)):
        return [
            {
                "role": "user" if _entry_role(entry) == "user" else "model",
                "parts": _entry_parts(entry),
            }
            for entry in contents
        ]
    return []


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters. Not exact."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def map_finish_reason(table: dict[str, FinishReason], native: str | None) -> FinishReason:
    if native is None:
        return FinishReason.UNSPECIFIED
    return table.get(native, FinishReason.UNSPECIFIED)
