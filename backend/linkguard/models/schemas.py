from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, computed_field

Severity = Literal["low", "medium", "high"]
ThreatLevel = Literal["safe", "warning", "danger"]


class ParsedURL(BaseModel):
    model_config = ConfigDict(frozen=True)

    original: str
    scheme: str
    hostname: str  # ASCII form, punycode for international names
    unicode_hostname: str
    path_query: str = ""
    href: str  # normalized form of ``original``

    @property
    def labels(self) -> List[str]:
        return self.hostname.split(".")

    @property
    def registered_name(self) -> Optional[str]:
        """Second-level label, or None for single-label hosts like ``localhost``."""
        labels = self.labels
        if len(labels) < 2:
            return None
        return labels[-2]


class TrustContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    trusted: bool = False


# ---- Per-detector evidence. `kind` always equals the owning Finding's tag.
class InsecureProtocolDetail(BaseModel):
    kind: Literal["insecure_protocol"] = "insecure_protocol"
    scheme: str


class IPHostDetail(BaseModel):
    kind: Literal["ip_host"] = "ip_host"
    address: str


class AbusedTLDDetail(BaseModel):
    kind: Literal["abused_tld"] = "abused_tld"
    tld: str


class SubdomainDetail(BaseModel):
    kind: Literal["excessive_subdomains"] = "excessive_subdomains"
    label_count: int


class TyposquatDetail(BaseModel):
    kind: Literal["typosquat"] = "typosquat"
    label: str
    brand: str
    distance: int


class KeywordDetail(BaseModel):
    kind: Literal["phishing_keywords"] = "phishing_keywords"
    keywords: List[str]


class HomographDetail(BaseModel):
    kind: Literal["homograph"] = "homograph"
    punycode: bool
    mixed_script: bool


class EntropyDetail(BaseModel):
    kind: Literal["high_entropy"] = "high_entropy"
    label: str
    entropy: float


class LengthDetail(BaseModel):
    kind: Literal["excessive_length"] = "excessive_length"
    length: int


class ShortenerDetail(BaseModel):
    kind: Literal["shortener"] = "shortener"
    service: str


class RedirectDetail(BaseModel):
    kind: Literal["embedded_redirect"] = "embedded_redirect"
    occurrences: int


DetailPayload = Annotated[
    Union[
        InsecureProtocolDetail,
        IPHostDetail,
        AbusedTLDDetail,
        SubdomainDetail,
        TyposquatDetail,
        KeywordDetail,
        HomographDetail,
        EntropyDetail,
        LengthDetail,
        ShortenerDetail,
        RedirectDetail,
    ],
    Field(discriminator="kind"),
]


class Finding(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str
    tag: str
    evidence: DetailPayload


class AnalysisDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    hostname: Optional[str] = None
    protocol: Optional[str] = None
    https: Optional[bool] = None
    trusted: bool = False
    error: Optional[str] = None
    # evidence from every finding, in detector order
    signals: List[DetailPayload] = Field(default_factory=list)

    @computed_field(alias="usesIP")
    @property
    def uses_ip(self) -> bool:
        return any(s.kind == "ip_host" for s in self.signals)

    def signal(self, kind: str):
        for s in self.signals:
            if s.kind == kind:
                return s
        return None


class AnalysisResult(BaseModel):
    """
    Build through ``ScoringPolicy.result`` so ``score`` and ``threat_level``
    are derived from ``findings``. The engine's degraded answer for
    unparseable input is the only other producer.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    threat_level: ThreatLevel = Field(alias="threatLevel")
    score: int
    message: str
    findings: List[Finding] = Field(default_factory=list)
    details: AnalysisDetails = Field(default_factory=AnalysisDetails)
    checked_at: int = Field(alias="checkedAt")  # epoch milliseconds

    @property
    def tags(self) -> List[str]:
        return [f.tag for f in self.findings]


# ---- Request/response boundary
class AnalyzeRequest(BaseModel):
    url: str = Field(..., min_length=1)


class AnalyzeSuccess(BaseModel):
    status: Literal["ok"] = "ok"
    result: AnalysisResult


class AnalyzeFailure(BaseModel):
    status: Literal["error"] = "error"
    url: str
    message: str = "Failed to check link safety"


AnalyzeResponse = Annotated[Union[AnalyzeSuccess, AnalyzeFailure], Field(discriminator="status")]


class SweepResult(BaseModel):
    evicted: int
    remaining: int


class EngineStats(BaseModel):
    links_checked: int = 0
    threats_flagged: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    cache_size: int = 0
