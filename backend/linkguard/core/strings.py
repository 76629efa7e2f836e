import math
from collections import Counter


def levenshtein(a: str, b: str) -> int:
    """Unit-cost edit distance (insert / delete / substitute), two rolling rows."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        cur = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            cur[j] = min(
                prev[j] + 1,         # deletion
                cur[j - 1] + 1,      # insertion
                prev[j - 1] + cost,  # substitution
            )
        prev = cur
    return prev[-1]


def shannon_entropy(s: str) -> float:
    """Bits per character over the string's own character frequencies."""
    if not s:
        return 0.0
    n = len(s)
    ent = 0.0
    for count in Counter(s).values():
        p = count / n
        ent -= p * math.log2(p)
    return ent
