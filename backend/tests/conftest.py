import pytest

from linkguard.core.config import Settings
from linkguard.core.engine import LinkAnalyzer
from linkguard.models.schemas import AnalysisResult

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class CountingCheck:
    """Wraps a detector and counts how often the pipeline calls it."""

    def __init__(self, inner):
        self.inner = inner
        self.key = inner.key
        self.calls = 0

    def run(self, url, trust):
        self.calls += 1
        return self.inner.run(url, trust)


def make_result(url: str, checked_at: int, threat_level: str = "safe", score: int = 0) -> AnalysisResult:
    return AnalysisResult(
        url=url,
        threat_level=threat_level,
        score=score,
        message="No obvious issues detected",
        checked_at=checked_at,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def analyzer(settings, clock):
    return LinkAnalyzer(settings=settings, clock=clock)
