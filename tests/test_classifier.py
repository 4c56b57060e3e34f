import math

import pytest

from domain.classifier import classify, risk_bucket


@pytest.mark.parametrize("risk", [0, 12.5, 39.99, 40])
def test_genuine_band_is_inclusive_at_40(risk):
    assert classify(risk).category == "genuine"
    assert classify(risk).verdict == "Genuine Job"


@pytest.mark.parametrize("risk", [40.01, 41, 55, 69, 69.99])
def test_suspicious_band_is_open_interval(risk):
    assert classify(risk).category == "suspicious"
    assert classify(risk).verdict == "Suspicious"


@pytest.mark.parametrize("risk", [70, 85, 100])
def test_fake_band_is_inclusive_at_70(risk):
    assert classify(risk).category == "fake"
    assert classify(risk).verdict == "Fake Job"


def test_boundaries_from_both_sides():
    assert classify(40).category == "genuine"
    assert classify(70).category == "fake"
    assert classify(41).category == "suspicious"
    assert classify(69).category == "suspicious"


def test_out_of_range_scores_are_clamped():
    assert classify(-5) == classify(0)
    assert classify(250) == classify(100)


def test_equal_scores_classify_identically():
    assert classify(55) == classify(55.0)
    assert classify(55).risk_level == "Medium"


def test_rejects_non_numbers():
    with pytest.raises(ValueError):
        classify("80")
    with pytest.raises(ValueError):
        classify(math.nan)
    with pytest.raises(ValueError):
        classify(True)


def test_risk_bucket_uses_same_partition():
    assert [risk_bucket(r) for r in (10, 50, 90)] == ["low", "medium", "high"]
