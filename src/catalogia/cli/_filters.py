"""CLI filter token parser: converts ``key[=v1,v2]`` tokens to a filter tree."""

from __future__ import annotations

from catalogia.filters import AllOf, EntityFilter, Leaf


def parse_cli_filters(tokens: list[str] | None) -> EntityFilter | None:
    """Parse ``--filter`` tokens; repeated tokens are AND-combined.

    ``kind=component,api`` matches either value; a bare ``spec.owner`` only
    requires the key to be present.
    """
    if not tokens:
        return None

    leaves: list[EntityFilter] = []
    for token in tokens:
        key, sep, raw = token.partition("=")
        if not sep:
            leaves.append(Leaf(key))
            continue
        values = tuple(v.strip() for v in raw.split(",") if v.strip())
        if not values:
            raise ValueError(f"Filter '{token}' has no values after '='")
        leaves.append(Leaf(key, values))

    if len(leaves) == 1:
        return leaves[0]
    return AllOf(leaves)
