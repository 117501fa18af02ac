from __future__ import annotations

import re

_CAMEL_CASE_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
_CAPITAL_BOUNDARY_RE = re.compile(r"(?=[A-Z])")


def is_camel_case(name: str) -> bool:
    return bool(_CAMEL_CASE_RE.match(name))


def split_camel_case(name: str) -> list[str]:
    """
    Split an identifier before every capital letter.

    `fetchUserData` -> ["fetch", "User", "Data"]. Consecutive capitals split
    into single letters (`getURL` -> ["get", "U", "R", "L"]), which the
    descriptiveness check treats as too short.
    """

    return [part for part in _CAPITAL_BOUNDARY_RE.split(name) if part]


def has_descriptive_parts(words: list[str]) -> bool:
    return len(words) > 1 and all(len(word) > 1 for word in words)


def has_type_prefix(name: str, marker: str) -> bool:
    """`isActive` carries the `is` prefix; `issues` does not."""

    if len(name) <= len(marker) or not name.startswith(marker):
        return False
    nxt = name[len(marker)]
    return nxt.isupper() or nxt.isdigit() or nxt == "_"


def has_type_suffix(name: str, marker: str) -> bool:
    """`itemCount` carries the `count` suffix; `discount` does not."""

    if len(name) <= len(marker):
        return False
    capitalized = marker[:1].upper() + marker[1:]
    return name.endswith(capitalized) or name.endswith(f"_{marker}")
