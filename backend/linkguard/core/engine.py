import asyncio
import logging
import threading
import time
from typing import List, Optional, Sequence

from linkguard.checks.host import AbusedTLDCheck, IPHostCheck, ShortenerCheck, SubdomainCheck
from linkguard.checks.impersonation import HomographCheck, KeywordCheck, TyposquatCheck
from linkguard.checks.randomness import EntropyCheck
from linkguard.checks.transport import EmbeddedRedirectCheck, InsecureProtocolCheck, LengthCheck
from linkguard.core.cache import Clock, ResultCache, now_ms
from linkguard.core.config import Settings
from linkguard.core.errors import DetectorFault, MalformedURL
from linkguard.core.scoring import ScoringPolicy
from linkguard.core.urls import is_known_domain, parse_url
from linkguard.models.schemas import (
    AnalysisDetails,
    AnalysisResult,
    AnalyzeFailure,
    AnalyzeRequest,
    AnalyzeResponse,
    AnalyzeSuccess,
    EngineStats,
    Finding,
    ParsedURL,
    TrustContext,
)

logger = logging.getLogger(__name__)

DEGRADED_SCORE = 10
DEGRADED_MESSAGE = "Could not fully analyze this URL"


def build_checks(settings: Settings) -> List:
    """Detectors in evaluation order. Order only affects ``details.signals``."""
    return [
        InsecureProtocolCheck(),
        IPHostCheck(),
        AbusedTLDCheck(settings.abused_tlds),
        SubdomainCheck(settings.max_subdomain_labels),
        TyposquatCheck(settings.brand_names, settings.typosquat_max_distance),
        KeywordCheck(settings.keywords),
        HomographCheck(),
        EntropyCheck(settings.entropy_threshold, settings.entropy_min_length),
        LengthCheck(settings.max_url_length),
        ShortenerCheck(settings.shorteners),
        EmbeddedRedirectCheck(),
    ]


class LinkAnalyzer:
    """
    Cache lookup -> parse -> detectors -> score -> message -> cache insert.

    Everything but the cache is stateless, so one instance can serve
    concurrent callers.
    """

    def __init__(self, settings: Optional[Settings] = None, cache: Optional[ResultCache] = None,
                 clock: Clock = now_ms, checks: Optional[Sequence] = None):
        self.settings = settings or Settings()
        self.clock = clock
        self.cache = cache if cache is not None else ResultCache.from_settings(self.settings, clock=clock)
        self.checks = list(checks) if checks is not None else build_checks(self.settings)
        self.policy = ScoringPolicy.from_settings(self.settings)
        self._stats = EngineStats()
        self._stats_lock = threading.Lock()

    # ---- public surface
    def analyze(self, url: str) -> AnalysisResult:
        started = time.perf_counter()
        key = url if isinstance(url, str) else str(url)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Using cached result for: {key}")
            self._record(cached, cache_hit=True)
            return cached

        try:
            result = self._run_pipeline(key)
        except MalformedURL as e:
            logger.info(f"Malformed URL {key!r}: {e.reason}")
            result = self._degraded(key, e.reason)
        except Exception as e:
            logger.exception(f"Unexpected error analyzing {key!r}")
            result = self._degraded(key, repr(e))

        self.cache.put(key, result)
        self._record(result, cache_hit=False)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"Analyzed {key} -> {result.threat_level} ({result.score}) in {elapsed_ms:.1f}ms")
        if elapsed_ms > self.settings.slow_analysis_ms:
            logger.warning(
                f"Response time {elapsed_ms:.1f}ms exceeds target {self.settings.slow_analysis_ms:.0f}ms for {key}"
            )
        return result

    def handle(self, request: AnalyzeRequest) -> AnalyzeResponse:
        try:
            return AnalyzeSuccess(result=self.analyze(request.url))
        except Exception:
            logger.exception(f"Error checking link: {request.url}")
            return AnalyzeFailure(url=request.url)

    async def handle_async(self, request: AnalyzeRequest) -> AnalyzeResponse:
        return await asyncio.to_thread(self.handle, request)

    def sweep_cache(self, now: Optional[int] = None) -> int:
        return self.cache.sweep(now)

    def stats(self) -> EngineStats:
        with self._stats_lock:
            return self._stats.model_copy(update={"cache_size": len(self.cache)})

    def trust_context(self, parsed: ParsedURL) -> TrustContext:
        return TrustContext(trusted=is_known_domain(parsed.hostname, self.settings.known_domains))

    # ---- pipeline
    def _run_pipeline(self, url: str) -> AnalysisResult:
        parsed = parse_url(url)
        trust = self.trust_context(parsed)
        findings = self._run_checks(parsed, trust)
        return self.policy.result(
            url,
            findings,
            AnalysisDetails(
                hostname=parsed.hostname,
                protocol=f"{parsed.scheme}:",
                https=parsed.scheme == "https",
                trusted=trust.trusted,
                signals=[f.evidence for f in findings],
            ),
            self.clock(),
        )

    def _run_checks(self, parsed: ParsedURL, trust: TrustContext) -> List[Finding]:
        findings: List[Finding] = []
        for check in self.checks:
            try:
                finding = check.run(parsed, trust)
            except Exception as e:
                fault = DetectorFault(getattr(check, "key", type(check).__name__), e)
                logger.error(f"Detector fault, skipping: {fault}", exc_info=e)
                continue
            if finding is not None:
                findings.append(finding)
        return findings

    def _degraded(self, url: str, error: str) -> AnalysisResult:
        return AnalysisResult(
            url=url,
            threat_level="warning",
            score=DEGRADED_SCORE,
            message=DEGRADED_MESSAGE,
            details=AnalysisDetails(error=error),
            checked_at=self.clock(),
        )

    def _record(self, result: AnalysisResult, cache_hit: bool) -> None:
        with self._stats_lock:
            s = self._stats
            s.links_checked += 1
            if result.threat_level == "danger":
                s.threats_flagged += 1
            if cache_hit:
                s.cache_hits += 1
            else:
                s.cache_misses += 1


_DEFAULT: Optional[LinkAnalyzer] = None


def get_analyzer() -> LinkAnalyzer:
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = LinkAnalyzer()
    return _DEFAULT


def analyze(url: str) -> AnalysisResult:
    return get_analyzer().analyze(url)


def sweep_cache(now: Optional[int] = None) -> int:
    return get_analyzer().sweep_cache(now)
