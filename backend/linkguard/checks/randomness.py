from typing import Optional
from linkguard.core.strings import shannon_entropy
from linkguard.models.schemas import EntropyDetail, Finding, ParsedURL, TrustContext


class EntropyCheck:
    """
    Crude DGA heuristic: a long second-level label whose characters are close
    to uniformly distributed. Needs at least 14 distinct characters to clear
    the default 3.8 bit threshold.
    """
    key = "high_entropy"
    title = "Random-looking domain"
    severity = "medium"

    def __init__(self, threshold: float = 3.8, min_length: int = 8):
        self.threshold = threshold
        self.min_length = min_length

    def run(self, url: ParsedURL, trust: TrustContext) -> Optional[Finding]:
        if trust.trusted:
            return None
        label = url.registered_name
        if not label or len(label) <= self.min_length:
            return None
        entropy = shannon_entropy(label)
        if entropy <= self.threshold:
            return None
        return Finding(
            severity=self.severity,
            message="Domain name looks randomly generated",
            tag=self.key,
            evidence=EntropyDetail(label=label, entropy=round(entropy, 3)),
        )
