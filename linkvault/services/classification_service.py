"""Classification advisor: LLM-backed tag and folder suggestions.

Provider-agnostic via LiteLLM. Each user may store their own provider and key;
otherwise CLASSIFIER_MODEL, CLASSIFIER_API_KEY and optionally
CLASSIFIER_API_BASE configure a server-wide default.

Replies are untrusted: only ids from the candidate list passed in are ever
returned, and every failure (no configuration, no candidates, provider error,
unparseable reply) degrades to ``None``.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..core.config import settings

logger = logging.getLogger(__name__)

# First {...} block in the reply; models like to wrap JSON in prose or fences.
_JSON_OBJECT_RE = re.compile(r'\{[\s\S]*\}')

SYSTEM_PROMPT = (
    "You classify bookmarks. You only ever choose from the options you are "
    "given and answer with a single JSON object and nothing else."
)


@dataclass(frozen=True)
class TagCandidate:
    id: str
    name: str


@dataclass(frozen=True)
class FolderCandidate:
    id: str
    name: str
    path: str


@dataclass(frozen=True)
class TagSuggestion:
    tag_ids: List[str] = field(default_factory=list)
    reason: str = ""


@dataclass(frozen=True)
class FolderSuggestion:
    folder_id: str
    reason: str = ""


def build_tag_prompt(url: str, title: str, candidates: Sequence[TagCandidate]) -> str:
    options = "\n".join(f"- {c.name} (id: {c.id})" for c in candidates)
    return (
        "Pick the tags that best describe this link.\n\n"
        f"URL: {url}\n"
        f"Title: {title}\n\n"
        f"Available tags (choose only from these):\n{options}\n\n"
        "Rules:\n"
        "1. Choose at most 3 tags.\n"
        "2. Choose none if nothing fits.\n\n"
        'Reply with JSON only: {"tag_ids": ["<id>", ...], "reason": "<one sentence>"}'
    )


def build_folder_prompt(url: str, title: str, candidates: Sequence[FolderCandidate]) -> str:
    options = "\n".join(f"- {c.path} (id: {c.id})" for c in candidates)
    return (
        "Pick the single folder this link belongs in.\n\n"
        f"URL: {url}\n"
        f"Title: {title}\n\n"
        f"Available folders (choose exactly one):\n{options}\n\n"
        "Rules:\n"
        "1. Prefer the most specific matching folder.\n"
        "2. If nothing fits, choose the top-level folder closest in topic.\n\n"
        'Reply with JSON only: {"folder_id": "<id>", "reason": "<one sentence>"}'
    )


def _first_json_object(content: Optional[str]) -> Optional[dict]:
    if not content:
        return None
    match = _JSON_OBJECT_RE.search(content)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_tag_response(content: Optional[str], candidates: Sequence[TagCandidate]) -> Optional[TagSuggestion]:
    """Keep only suggested tags that are among ``candidates``.

    Entries may be candidate ids or, leniently, candidate names.
    """
    parsed = _first_json_object(content)
    if parsed is None:
        return None

    raw = parsed.get("tag_ids", parsed.get("tagIds"))
    if not isinstance(raw, list):
        return None

    by_id = {c.id: c for c in candidates}
    by_name = {c.name.lower(): c for c in candidates}
    chosen: List[str] = []
    for entry in raw:
        if not isinstance(entry, str):
            continue
        candidate = by_id.get(entry) or by_name.get(entry.lower())
        if candidate and candidate.id not in chosen:
            chosen.append(candidate.id)

    reason = parsed.get("reason")
    return TagSuggestion(tag_ids=chosen, reason=reason if isinstance(reason, str) else "")


def parse_folder_response(
    content: Optional[str], candidates: Sequence[FolderCandidate]
) -> Optional[FolderSuggestion]:
    """Return the suggestion only if it names one of ``candidates``."""
    parsed = _first_json_object(content)
    if parsed is None:
        return None

    folder_id = parsed.get("folder_id", parsed.get("folderId"))
    if not any(c.id == folder_id for c in candidates):
        return None

    reason = parsed.get("reason")
    return FolderSuggestion(folder_id=folder_id, reason=reason if isinstance(reason, str) else "")


@dataclass(frozen=True)
class AdvisorConfig:
    """Where completions go: a LiteLLM model string and its credentials."""
    model: str
    api_key: str
    api_base: str = ""
    timeout: int = 15


def server_config() -> Optional[AdvisorConfig]:
    """The process-wide CLASSIFIER_* configuration, if complete."""
    if not settings.classifier_configured:
        return None
    return AdvisorConfig(
        model=settings.classifier_model,
        api_key=settings.classifier_api_key,
        api_base=settings.classifier_api_base,
        timeout=settings.classifier_timeout,
    )


class ClassificationAdvisor:
    """Asks an LLM to choose tags or a folder for a link.

    ``config`` is usually a user's own provider settings; without one the
    server-wide classifier configuration is used.
    """

    def __init__(self, config: Optional[AdvisorConfig] = None):
        self._config = config

    @property
    def config(self) -> Optional[AdvisorConfig]:
        return self._config or server_config()

    def is_configured(self) -> bool:
        """Check if a model and key are available."""
        return self.config is not None

    def suggest_tags(
        self, url: str, title: str, candidates: Sequence[TagCandidate]
    ) -> Optional[TagSuggestion]:
        config = self.config
        if not candidates or config is None:
            return None
        content = self._complete(config, build_tag_prompt(url, title, candidates))
        suggestion = parse_tag_response(content, candidates)
        if suggestion is None and content is not None:
            logger.warning("Unusable tag suggestion reply", extra={"url": url})
        return suggestion

    def suggest_folder(
        self, url: str, title: str, candidates: Sequence[FolderCandidate]
    ) -> Optional[FolderSuggestion]:
        config = self.config
        if not candidates or config is None:
            return None
        content = self._complete(config, build_folder_prompt(url, title, candidates))
        suggestion = parse_folder_response(content, candidates)
        if suggestion is None and content is not None:
            logger.warning("Unusable folder suggestion reply", extra={"url": url})
        return suggestion

    @staticmethod
    def _complete(config: AdvisorConfig, prompt: str) -> Optional[str]:
        """One completion round-trip. Returns None on any provider failure."""
        try:
            import litellm

            kwargs: dict = {
                "model": config.model,
                "api_key": config.api_key,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "max_tokens": 200,
                "temperature": 0.1,
                "timeout": config.timeout,
            }
            if config.api_base:
                kwargs["api_base"] = config.api_base

            response = litellm.completion(**kwargs)
            return response.choices[0].message.content
        except Exception:
            logger.exception("Classification request failed", extra={"model": config.model})
            return None
