import math
from typing import NamedTuple

FAKE_THRESHOLD = 70.0
GENUINE_THRESHOLD = 40.0

CATEGORIES = ("fake", "genuine", "suspicious")
RISK_BUCKETS = {"genuine": "low", "suspicious": "medium", "fake": "high"}


class Classification(NamedTuple):
    verdict: str
    category: str
    risk_level: str


_FAKE = Classification("Fake Job", "fake", "High")
_GENUINE = Classification("Genuine Job", "genuine", "Low")
_SUSPICIOUS = Classification("Suspicious", "suspicious", "Medium")


def clamp_risk(risk_rate) -> float:
    if isinstance(risk_rate, bool) or not isinstance(risk_rate, (int, float)):
        raise ValueError(f"risk_rate must be a number, got {risk_rate!r}")
    value = float(risk_rate)
    if math.isnan(value):
        raise ValueError("risk_rate must not be NaN")
    return min(max(value, 0.0), 100.0)


def classify(risk_rate) -> Classification:
    """
    Map a 0-100 risk score onto the three-way verdict.

    Both cutoffs are inclusive toward their named side: 70 is fake and 40 is
    genuine, leaving (40, 70) as the suspicious band. Scores outside [0, 100]
    are clamped first.
    """
    value = clamp_risk(risk_rate)
    if value >= FAKE_THRESHOLD:
        return _FAKE
    if value <= GENUINE_THRESHOLD:
        return _GENUINE
    return _SUSPICIOUS


def risk_bucket(risk_rate) -> str:
    return RISK_BUCKETS[classify(risk_rate).category]
