from __future__ import annotations

from .constants import META_INF


def norm_path(p: str) -> str:
    """Normalize archive paths to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading slashes
    - Remove empty and '.' segments
    - Reject '..' segments and empty results
    """
    p = p.replace("\\", "/").lstrip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError("Path may not contain '..'")
    if not parts:
        raise ValueError("Path may not be empty")
    return "/".join(parts)


def is_reserved(p: str) -> bool:
    """True when ``p`` falls under the META-INF namespace, ignoring case."""
    return p.replace("\\", "/").lstrip("/").upper().startswith(META_INF)


def basename(p: str) -> str:
    return p.rsplit("/", 1)[-1]
