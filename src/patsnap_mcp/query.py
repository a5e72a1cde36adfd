from __future__ import annotations

from typing import Any, Mapping

API_KEY_PARAM = "apikey"

Query = list[tuple[str, str]]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query(
    raw_args: Mapping[str, Any] | None,
    defaults: Mapping[str, str] | None = None,
    api_key: str | None = None,
) -> Query:
    """Turn tool arguments into ordered query pairs.

    None values are dropped, defaults fill only keys the caller left out,
    and the API key goes last.
    """
    pairs: Query = []
    seen: set[str] = set()

    for key, value in (raw_args or {}).items():
        if value is None:
            continue
        pairs.append((str(key), _stringify(value)))
        seen.add(str(key))

    for key, value in (defaults or {}).items():
        if key not in seen:
            pairs.append((key, _stringify(value)))
            seen.add(key)

    if api_key:
        pairs.append((API_KEY_PARAM, api_key))
    return pairs
