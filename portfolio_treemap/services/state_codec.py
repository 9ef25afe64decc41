"""Holdings list <-> URL-safe token.

Tokens are LZ-String ``compressToEncodedURIComponent`` output with every ``+``
swapped for ``_`` so they survive as a raw path segment. The URI-safe LZ
alphabet is ``A-Z a-z 0-9 + - $``: a genuine token never contains ``/ ? #``,
``%``, ``_`` or a space, which is what makes the decoder's normalization safe.
"""
from __future__ import annotations

import json
from typing import Iterable

from lzstring import LZString
from pydantic import TypeAdapter, ValidationError

from portfolio_treemap.schemas.holding import Holding

# Ways an unescaped '+' gets altered on its way back to us:
#   ' '   form-decoding of a query string
#   '_'   our own substitution at encode time
#   '%20' a space that was percent-encoded a second time
PLUS_MANGLINGS: tuple[str, ...] = (" ", "_", "%20")

_lz = LZString()
_holdings_adapter = TypeAdapter(list[Holding])


def _canonical_json(holdings: Iterable[Holding | dict]) -> str:
    rows = []
    for item in holdings:
        if isinstance(item, Holding):
            rows.append({"symbol": item.symbol, "quantity": item.quantity})
        else:
            rows.append({"symbol": item["symbol"], "quantity": item["quantity"]})
    # ASCII escapes keep every character within lzstring's 16-bit units
    return json.dumps(rows, separators=(",", ":"))


def normalize_token(token: str) -> str:
    normalized = token
    for mangled in PLUS_MANGLINGS:
        normalized = normalized.replace(mangled, "+")
    return normalized


def encode(holdings: Iterable[Holding | dict]) -> str:
    compressed = _lz.compressToEncodedURIComponent(_canonical_json(holdings))
    return compressed.replace("+", "_")


def decode(token: str | None) -> list[Holding] | None:
    if not token:
        return None

    try:
        decompressed = _lz.decompressFromEncodedURIComponent(normalize_token(token))
    except Exception as exc:
        # lzstring raises KeyError/IndexError on characters outside its alphabet
        print(f"[STATE][decode_error] stage=decompress error={exc!r}", flush=True)
        return None
    if not decompressed:
        print("[STATE][decode_error] stage=decompress error=empty", flush=True)
        return None

    try:
        payload = json.loads(decompressed)
        return _holdings_adapter.validate_python(payload)
    except (ValueError, ValidationError) as exc:
        print(f"[STATE][decode_error] stage=parse error={type(exc).__name__}", flush=True)
        return None
