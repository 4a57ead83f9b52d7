"""
Style codec - conversion between structured and flattened cell styles.

A style is either a mapping (``{"rounded": 1, "html": 1}``) or the flattened
string draw.io stores on each cell (``"rounded=1;html=1;"``).

Caveat: ``parse`` maps a bare key (``"ellipse;"``) to ``""``, and ``stringify``
writes every falsy value (``""``, ``0``, ``False``) back as a bare key. A
string survives string -> mapping -> string unchanged, but a mapping holding
``0`` or ``False`` comes back from the same trip as ``""``.
"""

from typing import Mapping, Union

StyleValue = Union[str, bool, int, float, None]
StyleLike = Union[str, Mapping[str, StyleValue]]


def _format_value(value: StyleValue) -> str:
    if value is True:
        return "1"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse(style: StyleLike | None) -> dict[str, StyleValue]:
    """
    Convert a style to its structured form.

    Mappings are shallow-copied so callers never alias the result.
    Strings are split on ``;``; each token is split on its first ``=``,
    and a token without ``=`` yields ``""``.
    """
    if style is None:
        return {}
    if not isinstance(style, str):
        return dict(style)

    result: dict[str, StyleValue] = {}
    for token in style.split(";"):
        if not token:
            continue
        key, _, value = token.partition("=")
        result[key] = value
    return result


def stringify(style: StyleLike | None) -> str:
    """
    Convert a style to its flattened ``key=value;`` form.

    Falsy values are written as a bare ``key;`` and ``None`` entries are
    skipped entirely. Strings are returned unchanged.
    """
    if style is None:
        return ""
    if isinstance(style, str):
        return style

    parts = []
    for key, value in style.items():
        if value is None:
            continue
        parts.append(f"{key}={_format_value(value)};" if value else f"{key};")
    return "".join(parts)


def merge(*styles: StyleLike | None) -> dict[str, StyleValue]:
    """Layer styles left to right; ``None`` values in a layer have no effect."""
    merged: dict[str, StyleValue] = {}
    for style in styles:
        for key, value in parse(style).items():
            if value is not None:
                merged[key] = value
    return merged
