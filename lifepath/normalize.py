import re
from typing import Iterable, Set


def normalize_text(s: str) -> str:
    return " ".join(s.strip().lower().split())


def skill_key(name: str) -> str:
    """Lookup key for skill names: case and whitespace insensitive."""
    return normalize_text(name)


def slugify(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", normalize_text(s)).strip("-")


STOP_WORDS = {
    "a", "an", "and", "are", "as", "at", "be", "become", "by", "for", "from",
    "get", "have", "i", "in", "into", "is", "it", "my", "of", "on", "or",
    "our", "so", "that", "the", "their", "to", "want", "was", "we", "with",
    "within", "year", "years", "month", "months",
}

# Longest first so "ing" is tried before "s".
SUFFIXES = ("ing", "ers", "ed", "er", "es", "s")

_TOKEN_RE = re.compile(r"[a-z0-9+#]+")


def stem(word: str) -> str:
    for suffix in SUFFIXES:
        if word.endswith(suffix) and len(word) - len(suffix) >= 3:
            return word[: -len(suffix)]
    return word


def keywords(texts: Iterable[str]) -> Set[str]:
    """Normalized keyword set for deterministic lexical overlap."""
    out: Set[str] = set()
    for text in texts:
        for token in _TOKEN_RE.findall(normalize_text(text)):
            if token in STOP_WORDS or len(token) < 2:
                continue
            out.add(stem(token))
    return out
