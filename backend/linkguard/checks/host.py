import re
from typing import Iterable, Optional
from linkguard.models.schemas import (
    AbusedTLDDetail,
    Finding,
    IPHostDetail,
    ParsedURL,
    ShortenerDetail,
    SubdomainDetail,
    TrustContext,
)

IPV4_RE = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")


class IPHostCheck:
    key = "ip_host"
    title = "IP address instead of domain"
    severity = "high"

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        if not IPV4_RE.match(url.hostname):
            return None
        return Finding(severity=self.severity, message="Using IP address instead of domain name", tag=self.key,
                       evidence=IPHostDetail(address=url.hostname))


class AbusedTLDCheck:
    key = "abused_tld"
    title = "Commonly abused TLD"
    severity = "medium"

    def __init__(self, tlds: Iterable[str] = ()):
        # stored with the leading dot, e.g. ".tk"
        self.tlds = {t.lower() if t.startswith(".") else "." + t.lower() for t in tlds}

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        tld = "." + url.labels[-1]
        if tld not in self.tlds:
            return None
        return Finding(severity=self.severity, message="Domain uses commonly abused TLD", tag=self.key,
                       evidence=AbusedTLDDetail(tld=tld))


class SubdomainCheck:
    key = "excessive_subdomains"
    title = "Excessive subdomains"
    severity = "medium"

    def __init__(self, max_labels: int = 4):
        self.max_labels = max_labels

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        count = len(url.labels)
        if count <= self.max_labels:
            return None
        return Finding(severity=self.severity, message="Unusual number of subdomains", tag=self.key,
                       evidence=SubdomainDetail(label_count=count))


class ShortenerCheck:
    key = "shortener"
    title = "Known URL shortener"
    severity = "low"  # informational; plenty of legitimate use

    def __init__(self, services: Iterable[str] = ()):
        self.services = {s.lower() for s in services}

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        if url.hostname not in self.services:
            return None
        return Finding(severity=self.severity, message="Shortened URL - destination unknown", tag=self.key,
                       evidence=ShortenerDetail(service=url.hostname))
