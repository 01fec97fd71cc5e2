"""
Transcript scrubbing.

Redacts sensitive values from a captured wire transcript before it is
logged. Redaction is targeted: adapters declare the fields that carry
secrets in their wire format (header names, JSON keys, XML elements, form
fields) and each call contributes the literal values it sent (card number,
CVV, API secret, request signature). Nothing else is touched.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

FILTERED = "[FILTERED]"

# Shorter literals (CVVs) only match as whole tokens so they cannot eat
# into timestamps, lengths or ids that happen to contain the same digits.
MIN_FREE_MATCH_LENGTH = 6


@dataclass(frozen=True)
class ScrubRule:
    """A named pattern whose sensitive part is replaced by the marker."""

    name: str
    pattern: re.Pattern[str]
    replacement: str | Callable[[re.Match[str]], str]

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def header(name: str) -> ScrubRule:
    """
    Redact an HTTP header value, keeping an auth scheme prefix such as ``Basic``.

    Works on raw headers and on headers rendered inside a quoted transcript
    line, where CRLF appears as the two-character escapes.
    """
    pattern = re.compile(
        r"((?:^|(?<=\\n)|(?<=[\s\"]))" + re.escape(name) + r":[ \t]*"
        r"(?:(?:Basic|Bearer|HMAC)[ \t]+)?)"
        r"[^\r\n\"\\]+",
        re.IGNORECASE | re.MULTILINE,
    )
    return ScrubRule(f"header:{name}", pattern, r"\g<1>" + FILTERED)


def json_field(name: str) -> ScrubRule:
    """Redact a JSON member value (string or number), escaped or not."""
    pattern = re.compile(
        r"(\\?\"" + re.escape(name) + r"\\?\"\s*:\s*)"
        r"(?:(\\?\")[^\"\\]*(\\?\")|-?\d+(?:\.\d+)?)"
    )

    def _replace(match: re.Match[str]) -> str:
        if match.group(2) is not None:
            return f"{match.group(1)}{match.group(2)}{FILTERED}{match.group(3)}"
        return f'{match.group(1)}"{FILTERED}"'

    return ScrubRule(f"json:{name}", pattern, _replace)


def xml_element(name: str) -> ScrubRule:
    """Redact an XML element's text, in raw or entity-escaped (SOAP payload) form."""
    tag = re.escape(name)
    pattern = re.compile(
        rf"(<{tag}>|&lt;{tag}&gt;)[^<&]*(</{tag}>|&lt;/{tag}&gt;)",
        re.IGNORECASE,
    )
    return ScrubRule(f"xml:{name}", pattern, r"\g<1>" + FILTERED + r"\g<2>")


def form_field(name: str) -> ScrubRule:
    """Redact a form-encoded field value."""
    pattern = re.compile(
        r"((?:^|[?&\"\s])" + re.escape(name) + r"=)[^&\s\"\\]*",
        re.MULTILINE,
    )
    return ScrubRule(f"form:{name}", pattern, r"\g<1>" + FILTERED)


def _literal_pattern(literal: str) -> re.Pattern[str]:
    escaped = re.escape(literal)
    if len(literal) < MIN_FREE_MATCH_LENGTH:
        return re.compile(rf"(?<![A-Za-z0-9]){escaped}(?![A-Za-z0-9])")
    return re.compile(escaped)


class Scrubber:
    """
    Pure transcript scrubber.

    Holds only the declared rules; the per-call literals are passed to
    scrub() so one instance can be shared by concurrent calls.
    """

    def __init__(self, rules: Iterable[ScrubRule] = ()) -> None:
        self.rules = tuple(rules)

    def scrub(self, transcript: str, literals: Iterable[str] = ()) -> str:
        """
        Redact declared fields and call-scoped literals.

        Idempotent: scrub(scrub(t)) == scrub(t).

        Args:
            transcript: Captured wire transcript
            literals: Sensitive values sent during this call

        Returns:
            Transcript with every sensitive value replaced by ``[FILTERED]``
        """
        for rule in self.rules:
            transcript = rule.apply(transcript)

        unique = {str(literal) for literal in literals if literal}
        for literal in sorted(unique, key=lambda value: (-len(value), value)):
            if literal in FILTERED:
                continue
            transcript = _literal_pattern(literal).sub(FILTERED, transcript)
        return transcript


def scrub(
    transcript: str,
    rules: Iterable[ScrubRule] = (),
    literals: Iterable[str] = (),
) -> str:
    """Convenience wrapper around Scrubber.scrub()."""
    return Scrubber(rules).scrub(transcript, literals)
