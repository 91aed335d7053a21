"""Content fingerprinting for skip-if-unchanged checks."""

from cardflow.kernel.scanner import strip_insignificant_whitespace


def normalize_content(text: str) -> str:
    """
    Collapse formatting: drop whitespace outside string literals.

    `{"a": 1}` and `{ "a":   1 }` normalize identically; whitespace inside a
    string value is content and is kept.
    """
    return strip_insignificant_whitespace(text or "")


def content_fingerprint(text: str) -> str:
    """
    Compute a stable, non-cryptographic fingerprint of JSON text, ignoring
    formatting whitespace.

    32-bit rolling hash (h * 31 + c) over the UTF-16 code units of the
    normalized text, the same value a JavaScript charCodeAt loop produces,
    rendered signed. Collisions only
    cost a redundant parse: callers confirm a match with normalize_content()
    before skipping work.

    Args:
        text: Raw JSON text

    Returns:
        Signed 32-bit hash rendered as a decimal string
    """
    h = 0
    encoded = normalize_content(text).encode("utf-16-le", "surrogatepass")
    # UTF-16 code units, so characters outside the BMP count as two.
    for i in range(0, len(encoded), 2):
        h = (h * 31 + (encoded[i] | encoded[i + 1] << 8)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return str(h)
