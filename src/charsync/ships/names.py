"""
Ship name normalization.

ESI sometimes hands back ship names that were serialized upstream as a
Python 2 unicode repr, e.g. ``u'Caf\\u00e9 Ship'`` instead of
``Café Ship``. This module unwraps and decodes those names so they can be
stored and displayed as-is. Anything that does not look like such a repr,
or fails to decode, is returned untouched.
"""

import json
import re

# Used with fullmatch; DOTALL so names containing newlines still match
_UNICODE_REPR_RE = re.compile(r"u'(.*)'", re.DOTALL)


def normalize_ship_name(ship_name: str) -> str:
    """
    Decode a ship name delivered as a ``u'...'`` repr literal.

    Steps:
    1. Match the whole string against ``u'<content>'``
    2. Escape bare double quotes in the content
    3. Parse ``"<content>"`` as a JSON string, resolving \\uXXXX and
       backslash escapes

    Never raises: if the pattern doesn't match or decoding fails, the
    original string is returned.

    Args:
        ship_name: Raw ship name from ESI

    Returns:
        Decoded name, or ship_name unchanged

    Examples:
        >>> normalize_ship_name("u'Rifter'")
        'Rifter'
        >>> normalize_ship_name("u'Caf\\\\u00e9 Ship'")
        'Café Ship'
        >>> normalize_ship_name("u'unterminated")
        "u'unterminated"
    """
    match = _UNICODE_REPR_RE.fullmatch(ship_name)
    if match is None:
        return ship_name

    inner = match.group(1).replace('"', '\\"')

    try:
        decoded = json.loads(f'"{inner}"')
    except ValueError:
        return ship_name

    if not isinstance(decoded, str):
        return ship_name

    # Unpaired surrogates (e.g. a lone \ud800) decode but can't be stored
    try:
        decoded.encode("utf-8")
    except UnicodeEncodeError:
        return ship_name

    return decoded
