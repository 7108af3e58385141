import base64
import re

_URL_SAFE_TO_STANDARD = str.maketrans("-_", "+/")
_NON_ALPHABET = re.compile(r"[^A-Za-z0-9+/]")


def strip_data_uri(value: str) -> str:
    """Drop everything up to the first comma (a ``data:<mime>;base64,`` prefix).

    A comma is never part of a base64 payload.
    """
    comma_index = value.find(",")
    if comma_index >= 0:
        return value[comma_index + 1 :]
    return value


def base64_to_bytes(value: str) -> bytes:
    """Decode a base64 payload leniently. Never raises.

    Accepts data URIs, line-wrapped and URL-safe payloads and missing
    padding. Decoding stops at the first ``=``; characters outside the
    alphabet are skipped and a trailing lone character is dropped.
    """
    raw = strip_data_uri(value).translate(_URL_SAFE_TO_STANDARD).split("=", 1)[0]
    raw = _NON_ALPHABET.sub("", raw)
    if len(raw) % 4 == 1:
        raw = raw[:-1]
    raw += "=" * (-len(raw) % 4)
    return base64.b64decode(raw)
