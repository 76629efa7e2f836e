import re
from typing import Iterable, List, Optional
from linkguard.core.strings import levenshtein
from linkguard.models.schemas import (
    Finding,
    HomographDetail,
    KeywordDetail,
    ParsedURL,
    TrustContext,
    TyposquatDetail,
)

PUNYCODE_PREFIX = "xn--"
LATIN_RE = re.compile(r"[a-z]")
CYRILLIC_RE = re.compile("[\u0400-\u04ff]")


class TyposquatCheck:
    """
    Flags a second-level label that is a near miss of a popular brand,
    e.g. ``paypa1.com``. Exact matches and trusted hosts are left alone.
    """
    key = "typosquat"
    title = "Possible typosquatting"
    severity = "high"

    def __init__(self, brands: Iterable[str] = (), max_distance: int = 2):
        self.brands = [b.lower() for b in brands]
        self.max_distance = max_distance

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        if trust.trusted:
            return None
        label = url.registered_name
        if not label:
            return None

        for brand in self.brands:
            if label == brand:
                continue
            # Length gap is a lower bound on the distance.
            if abs(len(label) - len(brand)) > self.max_distance:
                continue
            distance = levenshtein(label, brand)
            if distance <= self.max_distance:
                return Finding(
                    severity=self.severity,
                    message=f"Domain resembles '{brand}' (possible typosquatting)",
                    tag=self.key,
                    evidence=TyposquatDetail(label=label, brand=brand, distance=distance),
                )
        return None


class KeywordCheck:
    key = "phishing_keywords"
    title = "Sensitive keywords"
    severity = "medium"

    def __init__(self, keywords: Iterable[str] = ()):
        self.keywords = [k.lower() for k in keywords]

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        if trust.trusted:
            return None
        lowered = url.href.lower()
        matched: List[str] = [k for k in self.keywords if k in lowered]
        if not matched:
            return None
        return Finding(
            severity=self.severity,
            message="Contains sensitive keywords",
            tag=self.key,
            evidence=KeywordDetail(keywords=matched),
        )


class HomographCheck:
    key = "homograph"
    title = "Homograph / mixed-script domain"
    severity = "high"

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        punycode = PUNYCODE_PREFIX in url.hostname
        # scripts are only visible in the decoded form
        host = url.unicode_hostname
        mixed = bool(LATIN_RE.search(host)) and bool(CYRILLIC_RE.search(host))
        if not (punycode or mixed):
            return None
        if mixed:
            message = "Domain mixes Latin and Cyrillic characters (possible homograph attack)"
        else:
            message = "Internationalized domain name (possible homograph attack)"
        return Finding(
            severity=self.severity,
            message=message,
            tag=self.key,
            evidence=HomographDetail(punycode=punycode, mixed_script=mixed),
        )
