"""Ingredient canonicalization through an external language model.

The model merges name variants the local normalizer cannot ("Cherry Tomato"
and "Tomato"). Its answers are advisory: missing names map to themselves, a
malformed answer counts as empty, and a slow or failing call maps the whole
batch to itself so the shopping list is still built.
"""

import json
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable, Dict, Iterable, List, Optional

import requests

from prompts.ingredient_canonicalization import build_canonicalization_prompt

logger = logging.getLogger(__name__)

OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434/api/generate")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "mistral:7b")
DEFAULT_TIMEOUT = float(os.getenv("CANONICALIZE_TIMEOUT", "10"))

# (names, timeout) -> {raw name: canonical name}
Canonicalize = Callable[[List[str], float], Dict[str, str]]


class CanonicalizationCache:
    """Thread-safe memo of canonical names, keyed by raw name.

    Entries are immutable once written; a second write for the same name is
    ignored. One instance is normally shared per process (`default_cache`),
    but tests and callers can pass their own, empty or pre-seeded.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._entries: Dict[str, str] = dict(initial or {})

    def get(self, name: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(name)

    def put(self, name: str, canonical: str) -> None:
        with self._lock:
            self._entries.setdefault(name, canonical)

    def put_many(self, mapping: Dict[str, str]) -> None:
        with self._lock:
            for name, canonical in mapping.items():
                self._entries.setdefault(name, canonical)

    def lookup(self, names: Iterable[str]) -> tuple[Dict[str, str], List[str]]:
        """Split names into (cached mapping, names still to ask about)."""
        hits: Dict[str, str] = {}
        misses: List[str] = []
        with self._lock:
            for name in names:
                if name in self._entries:
                    hits[name] = self._entries[name]
                else:
                    misses.append(name)
        return hits, misses

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._entries


default_cache = CanonicalizationCache()


def parse_mapping(response_text: str) -> Dict[str, str]:
    """Extract a {name: canonical} object from model output.

    Tolerates prose or code fences around the JSON. Anything that is not an
    object of non-empty strings is dropped.

    Returns:
        The usable part of the mapping, possibly empty.
    """
    if not response_text:
        return {}

    json_start = response_text.find("{")
    json_end = response_text.rfind("}") + 1
    if json_start == -1 or json_end == 0:
        return {}

    try:
        parsed = json.loads(response_text[json_start:json_end])
    except json.JSONDecodeError:
        return {}

    return clean_mapping(parsed)


def clean_mapping(parsed) -> Dict[str, str]:
    """Keep only string keys mapped to non-empty string values."""
    if not isinstance(parsed, dict):
        return {}
    return {
        key: value.strip()
        for key, value in parsed.items()
        if isinstance(key, str) and isinstance(value, str) and value.strip()
    }


class OllamaCanonicalizer:
    """Batch canonicalization client for a local Ollama server.

    Raises `requests.RequestException` on transport errors and HTTP error
    statuses; callers go through `canonicalize_names`, which recovers.
    """

    def __init__(self, url: str = None, model: str = None):
        self.url = url or OLLAMA_URL
        self.model = model or OLLAMA_MODEL

    def __call__(self, names: List[str], timeout: float = DEFAULT_TIMEOUT) -> Dict[str, str]:
        if not names:
            return {}

        response = requests.post(
            self.url,
            json={
                "model": self.model,
                "prompt": build_canonicalization_prompt(names),
                "stream": False,
                "format": "json",
            },
            timeout=timeout,
        )
        response.raise_for_status()
        return parse_mapping(response.json().get("response", ""))


def _call_with_deadline(canonicalize: Canonicalize, names: List[str], timeout: float) -> Dict[str, str]:
    """Run the collaborator, giving up once `timeout` seconds have passed."""
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(canonicalize, names, timeout)
        return future.result(timeout=timeout)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def canonicalize_names(
    names: Iterable[str],
    canonicalize: Optional[Canonicalize] = None,
    cache: Optional[CanonicalizationCache] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Dict[str, str]:
    """Map each distinct name to its canonical name.

    Cached names are answered from `cache`; the rest are sent to
    `canonicalize` in one batch. Names the collaborator leaves out, or every
    name when it fails or times out, map to themselves. Only answers actually
    given by the collaborator are cached.

    Args:
        names: Ingredient display names
        canonicalize: Collaborator callable; None maps everything to itself
        cache: Memo to consult and fill; None disables caching
        timeout: Seconds to wait for the collaborator

    Returns:
        A mapping containing every distinct non-blank input name.
    """
    distinct = sorted({n for n in names if n and n.strip()})
    if not distinct:
        return {}

    if canonicalize is None:
        return {name: name for name in distinct}

    if cache is not None:
        mapping, misses = cache.lookup(distinct)
    else:
        mapping, misses = {}, list(distinct)

    if misses:
        answered = {}
        try:
            answered = clean_mapping(_call_with_deadline(canonicalize, misses, timeout))
        except FutureTimeoutError:
            logger.warning("Canonicalization timed out after %ss; keeping %d names as-is", timeout, len(misses))
        except Exception as e:
            logger.warning("Canonicalization failed (%s); keeping %d names as-is", e, len(misses))

        answered = {name: answered[name] for name in misses if name in answered}
        if cache is not None and answered:
            cache.put_many(answered)
        mapping.update(answered)

    return {name: mapping.get(name, name) for name in distinct}
