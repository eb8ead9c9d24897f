"""Tests for the 36-agreement overtime ladder."""

from pathlib import Path
import sys

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from kintai_compliance.models.master_data import OvertimeAlertLevel
from kintai_compliance.services.overtime_classifier import (
    annual_limit_exceeded,
    classify,
    get_alert_info,
    needs_medical_guidance,
)


def hm(hours, minutes=0):
    return hours * 60 + minutes


@pytest.mark.parametrize(
    "minutes, expected",
    [
        (0, OvertimeAlertLevel.NORMAL),
        (hm(34, 59), OvertimeAlertLevel.NORMAL),
        (hm(35), OvertimeAlertLevel.WARNING),
        (hm(44, 59), OvertimeAlertLevel.WARNING),
        (hm(45), OvertimeAlertLevel.EXCEEDED),
        (hm(54, 59), OvertimeAlertLevel.EXCEEDED),
        (hm(55), OvertimeAlertLevel.CAUTION),
        (hm(64, 59), OvertimeAlertLevel.CAUTION),
        (hm(65), OvertimeAlertLevel.SERIOUS),
        (hm(69, 59), OvertimeAlertLevel.SERIOUS),
        (hm(70), OvertimeAlertLevel.SEVERE),
        (hm(79, 59), OvertimeAlertLevel.SEVERE),
        (hm(80), OvertimeAlertLevel.CRITICAL),
        (hm(99, 59), OvertimeAlertLevel.CRITICAL),
        (hm(100), OvertimeAlertLevel.ILLEGAL),
        (hm(250), OvertimeAlertLevel.ILLEGAL),
        (-30, OvertimeAlertLevel.NORMAL),
    ],
)
def test_classify_boundaries(minutes, expected):
    assert classify(minutes) == expected


def test_classify_is_monotonic():
    previous = classify(0)
    for minutes in range(1, hm(120)):
        current = classify(minutes)
        assert current >= previous, minutes
        previous = current


def test_every_level_is_reachable():
    reached = {classify(m) for m in range(0, hm(120), 15)}
    assert reached == set(OvertimeAlertLevel)


def test_level_ordering():
    levels = list(OvertimeAlertLevel)
    assert levels == sorted(levels)
    assert OvertimeAlertLevel.ILLEGAL > OvertimeAlertLevel.CRITICAL
    assert OvertimeAlertLevel.NORMAL < OvertimeAlertLevel.WARNING


def test_alert_info():
    info = get_alert_info(OvertimeAlertLevel.ILLEGAL)
    assert info.threshold_hours == 100
    assert info.action == "即時是正"
    assert get_alert_info(OvertimeAlertLevel.EXCEEDED).threshold_hours == 45


def test_annual_limit():
    assert not annual_limit_exceeded(hm(359, 59))
    assert annual_limit_exceeded(hm(360))


def test_medical_guidance_is_strictly_above_80h():
    assert not needs_medical_guidance(hm(80))
    assert needs_medical_guidance(hm(80, 1))
