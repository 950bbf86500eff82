"""Decoding of scanned store codes"""

import re
from urllib.parse import parse_qs, urlparse

from kwikqueue.domain.errors import NoMatch

_CODE_RE = re.compile(r"^[A-Za-z0-9]{3,8}$")


def decode_company_code(payload: str) -> str:
    """
    Extract the store code from a QR payload.

    Accepts the bare code printed on the counter, a join URL carrying
    ``?code=XXXX``, or a URL whose last path segment is the code.
    """
    text = (payload or "").strip()
    if not text:
        raise NoMatch()

    if _CODE_RE.match(text):
        return text.upper()

    parsed = urlparse(text)
    if parsed.scheme and parsed.netloc:
        codes = parse_qs(parsed.query).get("code")
        if codes and _CODE_RE.match(codes[0].strip()):
            return codes[0].strip().upper()

        segments = [s for s in parsed.path.split("/") if s]
        if segments and _CODE_RE.match(segments[-1]):
            return segments[-1].upper()

    raise NoMatch()
