"""
End-to-end pipeline: parse -> detectors -> score -> message, plus the cache
and counters wired around it.
"""

import asyncio
import logging

import pytest

from conftest import CountingCheck
from linkguard.checks.transport import InsecureProtocolCheck
from linkguard.core.config import Settings
from linkguard.core.engine import DEGRADED_MESSAGE, LinkAnalyzer, build_checks
from linkguard.core.scoring import NO_ISSUES_MESSAGE, ScoringPolicy, compose_message
from linkguard.models.schemas import (
    AnalysisDetails,
    AnalyzeFailure,
    AnalyzeRequest,
    AnalyzeSuccess,
    Finding,
    InsecureProtocolDetail,
    IPHostDetail,
    KeywordDetail,
)

SAMPLE_URLS = [
    "https://example.com",
    "http://example.com",
    "http://192.168.1.1/path",
    "https://github.com/login",
    "https://paypa1.com/account/verify",
    "http://login.secure-update.example.tk/confirm",
    "https://a.b.c.d.example.com/",
    "https://bit.ly/abc",
    "https://xk7q2mz9vbn4wp8r.com",
    "https://p\u0430ypal.com",
    "https://example.com/r?to=https://evil.example.net",
    "https://example.com/" + "x" * 250,
]


class TestScoring:

    @pytest.mark.parametrize("score,level", [
        (0, "safe"), (19, "safe"), (20, "warning"), (39, "warning"), (40, "danger"), (95, "danger"),
    ])
    def test_threshold_ladder(self, score, level):
        assert ScoringPolicy().classify(score) == level

    def test_weights_override_merges_with_defaults(self):
        policy = ScoringPolicy({"low": 25})
        assert policy.weight("low") == 25
        assert policy.weight("high") == 40

    @pytest.mark.parametrize("url", SAMPLE_URLS)
    def test_score_is_sum_of_weights(self, analyzer, url):
        result = analyzer.analyze(url)
        assert result.score == sum(analyzer.policy.weight(f.severity) for f in result.findings)
        assert result.threat_level == analyzer.policy.classify(result.score)

    def test_configured_weights_change_verdict(self, clock):
        analyzer = LinkAnalyzer(Settings(severity_weights={"low": 25}), clock=clock)
        result = analyzer.analyze("http://example.com")
        assert result.score == 25
        assert result.threat_level == "warning"

    def test_policy_builds_consistent_results(self):
        policy = ScoringPolicy({"low": 30})
        findings = [
            Finding(severity="low", message="Not using HTTPS", tag="insecure_protocol",
                    evidence=InsecureProtocolDetail(scheme="http")),
        ]
        result = policy.result("http://example.com", findings, AnalysisDetails(), checked_at=1)
        assert result.score == 30
        assert result.threat_level == "warning"
        assert result.message == "Not using HTTPS"


class TestMessages:

    def _finding(self, severity, message):
        return Finding(severity=severity, message=message, tag="insecure_protocol",
                       evidence=InsecureProtocolDetail(scheme="http"))

    def test_no_findings(self):
        assert compose_message([]) == NO_ISSUES_MESSAGE

    def test_single_finding_has_no_suffix(self):
        assert compose_message([self._finding("low", "Not using HTTPS")]) == "Not using HTTPS"

    def test_highest_severity_leads(self):
        msg = compose_message([self._finding("low", "low one"), self._finding("high", "high one")])
        assert msg == "high one (+1 more issue)"

    def test_plural_and_stable_ties(self):
        msg = compose_message([
            self._finding("medium", "first medium"),
            self._finding("low", "a low"),
            self._finding("medium", "second medium"),
        ])
        assert msg == "first medium (+2 more issues)"


class TestAnalyze:

    def test_clean_url(self, analyzer):
        result = analyzer.analyze("https://example.com")
        assert result.threat_level == "safe"
        assert result.score == 0
        assert result.findings == []
        assert result.message == NO_ISSUES_MESSAGE
        assert result.details.https is True
        assert result.details.hostname == "example.com"

    def test_ip_literal(self, analyzer, clock):
        result = analyzer.analyze("http://192.168.1.1/path")
        assert result.details.uses_ip is True
        assert "insecure_protocol" in result.tags
        assert result.score >= 45
        assert result.threat_level == "danger"
        assert result.details.protocol == "http:"
        assert result.checked_at == clock.now
        assert result.message == "Using IP address instead of domain name (+1 more issue)"
        assert isinstance(result.details.signal("ip_host"), IPHostDetail)

    def test_trusted_domain_bypasses_keyword_and_typosquat(self, analyzer):
        result = analyzer.analyze("https://github.com/login")
        assert result.details.trusted is True
        assert "phishing_keywords" not in result.tags
        assert "typosquat" not in result.tags
        assert result.threat_level == "safe"

    def test_typosquat_is_danger_on_its_own(self, analyzer):
        result = analyzer.analyze("https://paypa1.com")
        assert result.tags == ["typosquat"]
        assert result.score == 40
        assert result.threat_level == "danger"

    def test_fullwidth_typosquat_is_caught(self, analyzer):
        result = analyzer.analyze("https://\uff50\uff41\uff59\uff50\uff41\uff11.com/")
        assert result.details.hostname == "paypa1.com"
        assert "typosquat" in result.tags
        assert result.threat_level == "danger"

    def test_typosquat_distance_three_is_ignored(self, analyzer):
        assert "typosquat" not in analyzer.analyze("https://pxxpa1.com").tags

    def test_cyrillic_homograph(self, analyzer):
        result = analyzer.analyze("https://p\u0430ypal.com/")
        homograph = [f for f in result.findings if f.tag == "homograph"]
        assert homograph and homograph[0].severity == "high"
        assert "phishing_keywords" not in result.tags
        assert result.threat_level == "danger"

    def test_details_follow_detector_order(self, analyzer):
        result = analyzer.analyze("http://login.example.tk/verify")
        assert [s.kind for s in result.details.signals] == ["insecure_protocol", "abused_tld", "phishing_keywords"]
        assert result.score == 45
        assert result.message == "Domain uses commonly abused TLD (+2 more issues)"
        keywords = result.details.signal("phishing_keywords")
        assert isinstance(keywords, KeywordDetail)
        assert keywords.keywords == ["login", "verify"]

    def test_allow_list_is_configurable(self, clock):
        analyzer = LinkAnalyzer(Settings(known_domains=["example.com"]), clock=clock)
        result = analyzer.analyze("https://shop.example.com/login")
        assert result.details.trusted is True
        assert result.findings == []

    def test_serializes_with_browser_field_names(self, analyzer):
        payload = analyzer.analyze("http://192.168.1.1/").model_dump(by_alias=True)
        assert payload["threatLevel"] == "danger"
        assert payload["details"]["usesIP"] is True
        assert "checkedAt" in payload


class TestDegradedAnswers:

    @pytest.mark.parametrize("raw", ["not a url", "", "http://[::1", "http://exa mple.com/"])
    def test_malformed_url_is_a_warning(self, analyzer, raw):
        result = analyzer.analyze(raw)
        assert result.threat_level == "warning"
        assert result.score == 10
        assert result.message == DEGRADED_MESSAGE
        assert result.details.error
        assert result.findings == []

    def test_failing_detector_does_not_suppress_others(self, settings, clock, caplog):
        class Exploding:
            key = "exploding"

            def run(self, url, trust):
                raise UnicodeError("bad label")

        checks = [Exploding()] + build_checks(settings)
        analyzer = LinkAnalyzer(settings, clock=clock, checks=checks)
        result = analyzer.analyze("http://192.168.1.1/")
        assert result.tags == ["insecure_protocol", "ip_host"]
        assert "exploding" in caplog.text

    def test_slow_analysis_is_logged(self, clock, caplog):
        analyzer = LinkAnalyzer(Settings(slow_analysis_ms=-1), clock=clock)
        with caplog.at_level(logging.WARNING, logger="linkguard.core.engine"):
            analyzer.analyze("https://example.com")
        assert "exceeds target" in caplog.text

    def test_fast_analysis_is_quiet(self, clock, caplog):
        analyzer = LinkAnalyzer(Settings(slow_analysis_ms=60_000), clock=clock)
        with caplog.at_level(logging.WARNING, logger="linkguard.core.engine"):
            analyzer.analyze("https://example.com")
        assert "exceeds target" not in caplog.text


class TestCaching:

    def test_second_call_is_a_cache_hit(self, settings, clock):
        counter = CountingCheck(InsecureProtocolCheck())
        analyzer = LinkAnalyzer(settings, clock=clock, checks=[counter])

        first = analyzer.analyze("http://example.com/")
        clock.advance(5_000)
        second = analyzer.analyze("http://example.com/")

        assert counter.calls == 1
        assert first.model_dump() == second.model_dump()
        assert first is not second

    def test_expired_entry_is_recomputed(self, settings, clock):
        counter = CountingCheck(InsecureProtocolCheck())
        analyzer = LinkAnalyzer(settings, clock=clock, checks=[counter])

        first = analyzer.analyze("http://example.com/")
        clock.advance(settings.cache_ttl_ms + 1)
        second = analyzer.analyze("http://example.com/")

        assert counter.calls == 2
        assert second.checked_at > first.checked_at

    def test_sweep_cache(self, settings, clock):
        analyzer = LinkAnalyzer(settings, clock=clock)
        analyzer.analyze("https://example.com/a")
        clock.advance(settings.cache_ttl_ms + 1)
        analyzer.analyze("https://example.com/b")

        assert analyzer.sweep_cache() == 1
        assert analyzer.sweep_cache() == 0
        assert len(analyzer.cache) == 1


class TestBoundary:

    def test_stats_count_links_and_threats(self, analyzer):
        analyzer.analyze("http://192.168.1.1/")
        analyzer.analyze("http://192.168.1.1/")
        analyzer.analyze("https://example.com")
        stats = analyzer.stats()
        assert stats.links_checked == 3
        assert stats.threats_flagged == 2
        assert stats.cache_hits == 1
        assert stats.cache_misses == 2
        assert stats.cache_size == 2

    def test_handle_returns_success(self, analyzer):
        response = analyzer.handle(AnalyzeRequest(url="https://example.com"))
        assert isinstance(response, AnalyzeSuccess)
        assert response.result.threat_level == "safe"

    def test_handle_async(self, analyzer):
        response = asyncio.run(analyzer.handle_async(AnalyzeRequest(url="http://192.168.1.1/")))
        assert isinstance(response, AnalyzeSuccess)
        assert response.result.threat_level == "danger"

    def test_handle_reports_failure_instead_of_raising(self, analyzer, monkeypatch):
        def boom(url):
            raise RuntimeError("engine down")

        monkeypatch.setattr(analyzer, "analyze", boom)
        response = analyzer.handle(AnalyzeRequest(url="https://example.com"))
        assert isinstance(response, AnalyzeFailure)
        assert response.status == "error"
        assert response.url == "https://example.com"
