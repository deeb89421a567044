"""Text folding shared by name matching and vocabulary lookups."""

import unicodedata


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def fold(value: str | None) -> str:
    """Lowercase, strip diacritics, collapse whitespace: ``" João  P"`` → ``"joao p"``."""
    return " ".join(strip_accents(value or "").lower().split())
