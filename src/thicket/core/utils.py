"""Small text helpers shared by the core modules."""

import unicodedata


def title_key(title: str) -> str:
    """
    Key used to compare note titles and reference text.

    Titles match case-insensitively, so "Beta", "beta" and "BETA" share a key.
    Surrounding whitespace is not significant. Plain lowercasing, so "Straße"
    and "Strasse" stay different titles.
    """
    return title.strip().lower()


def collation_key(text: str) -> tuple[str, str]:
    """
    Sort key approximating a locale-aware comparison.

    - Unicode normalize (NFKD), drop combining marks, casefold
    - Fall back to the raw text so the order stays total and deterministic

    Examples:
        >>> sorted(["beta", "Alpha", "Ágape"], key=collation_key)
        ['Ágape', 'Alpha', 'beta']
    """
    folded = unicodedata.normalize("NFKD", text)
    folded = "".join(c for c in folded if not unicodedata.combining(c))
    return (folded.casefold(), text)
