import re
from typing import Optional
from linkguard.models.schemas import (
    Finding,
    InsecureProtocolDetail,
    LengthDetail,
    ParsedURL,
    RedirectDetail,
    TrustContext,
)

EMBEDDED_SCHEME_RE = re.compile(r"https?://", re.IGNORECASE)


class InsecureProtocolCheck:
    key = "insecure_protocol"
    title = "Unencrypted HTTP"
    severity = "low"

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        if url.scheme != "http":
            return None
        return Finding(
            severity=self.severity,
            message="Not using HTTPS",
            tag=self.key,
            evidence=InsecureProtocolDetail(scheme=url.scheme),
        )


class LengthCheck:
    key = "excessive_length"
    title = "Excessive URL length"
    severity = "low"

    def __init__(self, max_length: int = 200):
        self.max_length = max_length

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        length = len(url.original)
        if length <= self.max_length:
            return None
        return Finding(
            severity=self.severity,
            message=f"Unusually long URL ({length} characters)",
            tag=self.key,
            evidence=LengthDetail(length=length),
        )


class EmbeddedRedirectCheck:
    key = "embedded_redirect"
    title = "Embedded redirect target"
    severity = "medium"

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        # The URL's own scheme counts as the first occurrence.
        occurrences = len(EMBEDDED_SCHEME_RE.findall(url.original))
        if occurrences < 2:
            return None
        return Finding(
            severity=self.severity,
            message="URL embeds another URL (possible open redirect)",
            tag=self.key,
            evidence=RedirectDetail(occurrences=occurrences),
        )
