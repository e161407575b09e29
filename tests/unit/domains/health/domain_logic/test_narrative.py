"""Golden-line tests for the coaching, lifestyle and state-insight narratives."""

from __future__ import annotations

import re
from datetime import datetime, timezone

import pytest

from healthcoach.core.storage.models import HealthRecord, TargetProfile
from healthcoach.domains.health.domain_logic.aggregator import GroupStats
from healthcoach.domains.health.domain_logic.narrative import (
    Section,
    compose,
    compose_coaching,
    compose_lifestyle,
    compose_state_insight,
    fmt_number,
    fmt_timestamp,
)
from healthcoach.domains.health.domain_logic.trends import TrendSignal

COACHING_GUIDANCE = [
    "[Response guidance]",
    "- Describe the recent tendency in plain language, using the numbers above.",
    "- Suggest at most three small, concrete habits around sleep, exercise or eating.",
    "- Do not diagnose, do not mention specific medications, and keep the tone encouraging.",
    "- End by recommending a consultation with a medical professional.",
]


@pytest.fixture
def coaching(templates):
    return templates.require("coaching")


@pytest.fixture
def lifestyle(templates):
    return templates.require("lifestyle")


@pytest.fixture
def state_insight(templates):
    return templates.require("state_insight")


def _latest() -> HealthRecord:
    return HealthRecord(
        id="r1",
        subject_id="alice",
        recorded_at=datetime(2026, 3, 14, 8, 30, 59, tzinfo=timezone.utc),
        kind="blood_pressure",
        primary_value=130.0,
        secondary_value=85.0,
        state_label="morning",
    )


class TestCompose:
    def test_blank_line_between_sections(self):
        lines = compose([Section("[A]", ["a1"]), Section("[B]", ["b1", "b2"])])
        assert lines == ["[A]", "a1", "", "[B]", "b1", "b2"]

    def test_empty_sections_are_skipped(self):
        assert compose([Section(), Section(lines=["x"])]) == ["x"]

    def test_formatting_helpers(self):
        assert fmt_number(82.5) == "82.5"
        assert fmt_number(125) == "125.0"
        assert fmt_number(1 / 3) == "0.3"
        assert fmt_timestamp(datetime(2026, 1, 2, 3, 4)) == "2026-01-02 03:04"


class TestCoachingNarrative:
    def test_full_narrative(self, coaching):
        lines = compose_coaching(
            coaching,
            days=7,
            blood_pressure=GroupStats(2, 125.0, 82.5),
            blood_sugar=GroupStats(1, 98.0, None),
            latest=_latest(),
            profile=TargetProfile("alice", 120.0, 80.0),
            note='Slept badly, "tired"',
        )
        assert lines == [
            "[Blood pressure / blood sugar summary for the last 7 days]",
            "- Blood pressure readings: 2",
            "- Average blood pressure: systolic 125.0 mmHg, diastolic 82.5 mmHg",
            "- Blood sugar readings: 1",
            "- Average blood sugar: 98.0 mg/dL",
            "",
            "[Most recent blood pressure reading]",
            "- Reading: 130.0 / 85.0 mmHg",
            "- Measured at: 2026-03-14 08:30",
            "- Measurement state: morning",
            "",
            "[Target blood pressure]",
            "- Target systolic: 120.0 mmHg, target diastolic: 80.0 mmHg",
            "",
            "[User note]",
            '- "Slept badly, "tired""',
            "- Respond to this note directly while following the guidance below.",
            "",
            *COACHING_GUIDANCE,
        ]

    def test_empty_window_uses_placeholders(self, coaching):
        lines = compose_coaching(
            coaching,
            days=7,
            blood_pressure=GroupStats.empty(),
            blood_sugar=GroupStats.empty(),
            latest=None,
            profile=None,
            note=None,
        )
        assert lines[:5] == [
            "[Blood pressure / blood sugar summary for the last 7 days]",
            "- Blood pressure readings: 0",
            "- No blood pressure readings were recorded in this period, so no average is available.",
            "- Blood sugar readings: 0",
            "- No blood sugar readings were recorded in this period, so no average is available.",
        ]
        assert "- No blood pressure reading has been recorded yet." in lines
        assert coaching.phrase("target_no_data") in lines
        assert "- (No note provided)" in lines
        assert not any("Average" in line for line in lines)

    def test_note_with_braces_is_verbatim(self, coaching):
        lines = compose_coaching(
            coaching,
            days=7,
            blood_pressure=GroupStats.empty(),
            blood_sugar=GroupStats.empty(),
            latest=None,
            profile=None,
            note="{days} {0}",
        )
        assert '- "{days} {0}"' in lines

    def test_latest_without_state(self, coaching):
        latest = _latest()
        latest.state_label = None
        lines = compose_coaching(
            coaching,
            days=30,
            blood_pressure=GroupStats(1, 130.0, 85.0),
            blood_sugar=GroupStats.empty(),
            latest=latest,
            profile=None,
            note="   ",
        )
        assert "- Measurement state: not noted" in lines
        assert "- (No note provided)" in lines
        assert lines[0] == "[Blood pressure / blood sugar summary for the last 30 days]"

    def test_averages_round_trip_to_one_decimal(self, coaching):
        bp = GroupStats(3, 123.456, 81.04)
        lines = compose_coaching(
            coaching,
            days=7,
            blood_pressure=bp,
            blood_sugar=GroupStats(2, 101.25, None),
            latest=None,
            profile=None,
            note=None,
        )
        bp_line = next(line for line in lines if line.startswith("- Average blood pressure"))
        parsed = [float(token) for token in re.findall(r"\d+\.\d", bp_line)]
        assert parsed == [round(bp.avg_primary, 1), round(bp.avg_secondary, 1)]

        sugar_line = next(line for line in lines if line.startswith("- Average blood sugar"))
        assert float(re.findall(r"\d+\.\d", sugar_line)[0]) == pytest.approx(101.2, abs=0.05)


class TestLifestyleNarrative:
    def _groups(self):
        return {
            "sleep": {"short": GroupStats(3, 135.0, 88.0), "enough": GroupStats.empty()},
            "exercise": {"yes": GroupStats(2, 118.5, 76.0), "no": GroupStats(1, 131.0, 84.0)},
            "stress": {
                "low": GroupStats.empty(),
                "mid": GroupStats(1, 124.0, 80.0),
                "high": GroupStats(2, 139.0, 89.5),
            },
        }

    def test_full_narrative(self, lifestyle):
        lines = compose_lifestyle(lifestyle, days=30, groups=self._groups())
        assert lines == [
            "[Sleep duration]",
            "- Under 6 hours: count=3, avg=135.0/88.0 mmHg",
            "- 6 hours or more: count=0, no readings in this group",
            "",
            "[Exercise]",
            "- Days with exercise: count=2, avg=118.5/76.0 mmHg",
            "- Days without exercise: count=1, avg=131.0/84.0 mmHg",
            "",
            "[Stress level]",
            "- Low (1-2): count=0, no readings in this group",
            "- Medium (3): count=1, avg=124.0/80.0 mmHg",
            "- High (4-5): count=2, avg=139.0/89.5 mmHg",
            "",
            "[Response guidance]",
            "- The statistics above cover blood pressure readings from the last 30 days.",
            "- Carefully describe any tendency between sleep, exercise, stress and blood pressure.",
            "- Treat groups with few readings as weak evidence and say so.",
            "- Never state that a habit causes a change in blood pressure.",
            "",
            lifestyle.phrase("disclaimer"),
        ]

    def test_disclaimer_is_always_last(self, lifestyle):
        lines = compose_lifestyle(lifestyle, days=7, groups={})
        assert lines[-1] == lifestyle.phrase("disclaimer")
        assert "- Under 6 hours: count=0, no readings in this group" in lines


class TestStateInsight:
    def test_empty_window(self, state_insight):
        summary, tips = compose_state_insight(
            state_insight,
            days=14,
            overall=GroupStats.empty(),
            deviations=[],
            stress_signal=None,
        )
        assert summary == [state_insight.phrase("no_data")]
        assert tips == [state_insight.phrase("no_data_tip"), state_insight.guardrails.disclaimers[-1]]

    def test_tips_follow_signals_then_disclaimers(self, state_insight):
        summary, tips = compose_state_insight(
            state_insight,
            days=14,
            overall=GroupStats(20, 125.4, 80.5),
            deviations=[
                TrendSignal("morning", "lower", 7, -7.0),
                TrendSignal("sauna", "higher", 9, 9.0),
            ],
            stress_signal=TrendSignal("stress", "higher", 4, 4.0),
        )
        assert summary == [
            "20 blood pressure readings were recorded over the last 14 days.",
            "Your overall systolic average is about 125 mmHg and your diastolic average is about 81 mmHg.",
        ]
        assert tips[0] == (
            "Readings taken in the morning tend to run about 7 mmHg lower than your overall systolic average."
        )
        assert tips[1].startswith("Readings taken in state 'sauna' tend to run about 9 mmHg higher")
        assert tips[2] == state_insight.phrase("stress_higher_tip", magnitude=4)
        assert tips[3:] == state_insight.guardrails.disclaimers

    def test_stress_lower_tip(self, state_insight):
        _, tips = compose_state_insight(
            state_insight,
            days=14,
            overall=GroupStats(10, 125.0, 80.0),
            deviations=[],
            stress_signal=TrendSignal("stress", "lower", 3, -3.0),
        )
        assert tips[0] == state_insight.phrase("stress_lower_tip")
        assert len(tips) == 3
