"""Narrative composer: renders statistics into ordered prompt lines.

Each variant is a fixed sequence of :class:`Section` objects rendered from a
:class:`NarrativeTemplate`. All wording comes from the template; this module
only decides which phrase applies and formats the numbers. Numeric tokens
are always one decimal place so they can be parsed back to the values they
came from.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from healthcoach.core.narrative.models import NarrativeTemplate
from healthcoach.core.storage.models import HealthRecord, TargetProfile
from healthcoach.domains.health.domain_logic.aggregator import GroupStats
from healthcoach.domains.health.domain_logic.trends import TrendSignal

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


@dataclass
class Section:
    """One block of the narrative: an optional heading and its lines."""

    heading: str | None = None
    lines: list[str] = field(default_factory=list)

    def render(self) -> list[str]:
        rendered = [self.heading] if self.heading else []
        rendered.extend(self.lines)
        return rendered


def compose(sections: Iterable[Section]) -> list[str]:
    """Flatten sections into lines with one blank line between sections."""
    lines: list[str] = []
    for section in sections:
        rendered = section.render()
        if not rendered:
            continue
        if lines:
            lines.append("")
        lines.extend(rendered)
    return lines


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def fmt_number(value: float) -> str:
    return f"{value:.1f}"


def fmt_timestamp(value: datetime) -> str:
    """Render as ``YYYY-MM-DD HH:MM`` in UTC (naive datetimes are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def fmt_days(days: float) -> str:
    return str(int(days)) if float(days).is_integer() else f"{days:g}"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _has_pair(stats: GroupStats) -> bool:
    return stats.has_averages and stats.avg_secondary is not None


# ---------------------------------------------------------------------------
# Coaching variant
# ---------------------------------------------------------------------------


def summary_section(
    template: NarrativeTemplate,
    days: float,
    blood_pressure: GroupStats,
    blood_sugar: GroupStats,
) -> Section:
    lines = [template.phrase("bp_count", count=blood_pressure.count)]
    if _has_pair(blood_pressure):
        lines.append(
            template.phrase(
                "bp_average",
                avg_primary=fmt_number(blood_pressure.avg_primary),
                avg_secondary=fmt_number(blood_pressure.avg_secondary),
            )
        )
    else:
        lines.append(template.phrase("bp_no_data"))

    lines.append(template.phrase("sugar_count", count=blood_sugar.count))
    if blood_sugar.count and blood_sugar.avg_primary is not None:
        lines.append(template.phrase("sugar_average", avg_primary=fmt_number(blood_sugar.avg_primary)))
    else:
        lines.append(template.phrase("sugar_no_data"))

    return Section(template.phrase("summary_heading", days=fmt_days(days)), lines)


def latest_reading_section(template: NarrativeTemplate, latest: HealthRecord | None) -> Section:
    heading = template.phrase("latest_heading")
    if latest is None:
        return Section(heading, [template.phrase("latest_no_data")])

    secondary = "-" if latest.secondary_value is None else fmt_number(latest.secondary_value)
    lines = [
        template.phrase("latest_value", primary=fmt_number(latest.primary_value), secondary=secondary),
        template.phrase("latest_time", timestamp=fmt_timestamp(latest.recorded_at)),
    ]
    if latest.state_label:
        lines.append(template.phrase("latest_state", state=latest.state_label))
    else:
        lines.append(template.phrase("latest_no_state"))
    return Section(heading, lines)


def target_section(template: NarrativeTemplate, profile: TargetProfile | None) -> Section:
    heading = template.phrase("target_heading")
    if profile is None:
        return Section(heading, [template.phrase("target_no_data")])
    return Section(
        heading,
        [
            template.phrase(
                "target_value",
                target_primary=fmt_number(profile.target_primary),
                target_secondary=fmt_number(profile.target_secondary),
            )
        ],
    )


def note_section(template: NarrativeTemplate, note: str | None) -> Section:
    heading = template.phrase("note_heading")
    if not note or not note.strip():
        return Section(heading, [template.phrase("note_no_data")])
    # The note is quoted verbatim; str.format does not re-scan substituted values.
    return Section(
        heading,
        [template.phrase("note_text", note=note), template.phrase("note_instruction")],
    )


def guidance_section(template: NarrativeTemplate, days: float) -> Section:
    return Section(
        template.phrase("guidance_heading"),
        [line.format(days=fmt_days(days)) for line in template.guidance],
    )


def compose_coaching(
    template: NarrativeTemplate,
    *,
    days: float,
    blood_pressure: GroupStats,
    blood_sugar: GroupStats,
    latest: HealthRecord | None,
    profile: TargetProfile | None,
    note: str | None,
) -> list[str]:
    """Summary, latest reading, target, note, then guidance."""
    return compose(
        [
            summary_section(template, days, blood_pressure, blood_sugar),
            latest_reading_section(template, latest),
            target_section(template, profile),
            note_section(template, note),
            guidance_section(template, days),
        ]
    )


# ---------------------------------------------------------------------------
# Lifestyle variant
# ---------------------------------------------------------------------------


def group_table_section(
    template: NarrativeTemplate, table_name: str, groups: dict[str, GroupStats]
) -> Section:
    """Render one covariate table; rows follow the template's label order."""
    table = template.tables[table_name]
    lines = []
    for key, label in table.labels.items():
        stats = groups.get(key, GroupStats.empty())
        if _has_pair(stats):
            lines.append(
                template.phrase(
                    "row",
                    label=label,
                    count=stats.count,
                    avg_primary=fmt_number(stats.avg_primary),
                    avg_secondary=fmt_number(stats.avg_secondary),
                )
            )
        else:
            lines.append(template.phrase("row_no_data", label=label, count=stats.count))
    return Section(table.heading, lines)


def compose_lifestyle(
    template: NarrativeTemplate,
    *,
    days: float,
    groups: dict[str, dict[str, GroupStats]],
) -> list[str]:
    """Sleep, exercise and stress tables, guidance, then the disclaimer line.

    The disclaimer is always the last line.
    """
    sections = [group_table_section(template, name, groups.get(name, {})) for name in template.tables]
    sections.append(guidance_section(template, days))
    sections.append(Section(lines=[template.phrase("disclaimer")]))
    return compose(sections)


# ---------------------------------------------------------------------------
# State insight variant (rule based, not sent to a model)
# ---------------------------------------------------------------------------


def state_label(template: NarrativeTemplate, state: str) -> str:
    key = f"state_label_{state}"
    if key in template.phrases:
        return template.phrase(key, state=state)
    return template.phrase("state_label_default", state=state)


def compose_state_insight(
    template: NarrativeTemplate,
    *,
    days: float,
    overall: GroupStats,
    deviations: Sequence[TrendSignal],
    stress_signal: TrendSignal | None,
) -> tuple[list[str], list[str]]:
    """Return ``(summary_lines, tips)`` for the by-state report."""
    disclaimers = list(template.guardrails.disclaimers)
    if overall.count == 0:
        return [template.phrase("no_data")], [template.phrase("no_data_tip"), disclaimers[-1]]

    summary = [template.phrase("summary_count", count=overall.count, days=fmt_days(days))]
    if _has_pair(overall):
        summary.append(
            template.phrase(
                "summary_average",
                avg_primary=round_half_up(overall.avg_primary),
                avg_secondary=round_half_up(overall.avg_secondary),
            )
        )

    tips = [
        template.phrase(
            "deviation_tip",
            label=state_label(template, signal.label),
            magnitude=signal.magnitude,
            direction=signal.direction,
        )
        for signal in deviations
    ]
    if stress_signal is not None:
        key = "stress_higher_tip" if stress_signal.direction == "higher" else "stress_lower_tip"
        tips.append(template.phrase(key, magnitude=stress_signal.magnitude))
    tips.extend(disclaimers)
    return summary, tips
