"""Health coach service: windows, statistics, narratives and coaching calls.

The service wires the pure aggregation pipeline (window, aggregator,
grouping, trends, narrative) to its collaborators: the record repository,
the coach log writer and the narrative generator. Every operation takes an
explicit ``subject_id``; an unknown subject raises :class:`NotFoundError`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from healthcoach.core.audit.logger import CoachLogWriter, clamp_history_limit
from healthcoach.core.errors import InsufficientDataError, UpstreamGenerationError
from healthcoach.core.llm.client import NarrativeGenerator
from healthcoach.core.llm.response import apply_guardrails
from healthcoach.core.llm.system_prompt import build_instructions
from healthcoach.core.narrative.models import NarrativeTemplate
from healthcoach.core.narrative.registry import TemplateRegistry
from healthcoach.core.storage.models import CoachLog, HealthRecord, TargetProfile
from healthcoach.core.storage.repository import HealthRepository
from healthcoach.domains.health.domain_logic.aggregator import GroupStats, compute_stats
from healthcoach.domains.health.domain_logic.grouping import group_by_state, lifestyle_groups
from healthcoach.domains.health.domain_logic.narrative import (
    compose_coaching,
    compose_lifestyle,
    compose_state_insight,
)
from healthcoach.domains.health.domain_logic.trends import (
    detect_state_deviations,
    detect_stress_deviation,
)
from healthcoach.domains.health.domain_logic.window import (
    COACH_WINDOW_DAYS,
    LIFESTYLE_MAX_WINDOW_DAYS,
    LIFESTYLE_WINDOW_DAYS,
    STATE_WINDOW_DAYS,
    SUMMARY_WINDOW_DAYS,
    Window,
    parse_window_days,
    select_window,
    window_bounds,
)

logger = logging.getLogger(__name__)

COACH_TEMPLATE = "coaching"
LIFESTYLE_TEMPLATE = "lifestyle"
STATE_TEMPLATE = "state_insight"


def _grouped_dict(groups: dict[str, dict[str, GroupStats]]) -> dict[str, dict[str, dict]]:
    return {
        name: {key: stats.as_dict() for key, stats in partition.items()}
        for name, partition in groups.items()
    }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class SummaryReport:
    days: float
    start: datetime
    end: datetime
    blood_pressure: GroupStats
    blood_sugar: GroupStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_days": self.days,
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
            "blood_pressure": self.blood_pressure.as_dict(),
            "blood_sugar": self.blood_sugar.as_dict(),
        }


@dataclass
class StateStatsReport:
    """Blood pressure statistics per measurement state, keys sorted."""

    days: float
    start: datetime
    end: datetime
    total_count: int
    states: list[tuple[str, GroupStats]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_days": self.days,
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
            "total_count": self.total_count,
            "states": [{"state": state, **stats.as_dict()} for state, stats in self.states],
        }


@dataclass
class LifestyleReport:
    days: float
    start: datetime
    end: datetime
    total_count: int
    groups: dict[str, dict[str, GroupStats]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_days": self.days,
            "from": self.start.isoformat(),
            "to": self.end.isoformat(),
            "total_count": self.total_count,
            **_grouped_dict(self.groups),
        }


@dataclass
class StateInsight:
    """Rule-based summary lines and tips, with the state statistics behind them."""

    report: StateStatsReport
    summary_lines: list[str]
    tips: list[str]
    template_version: str

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.report.to_dict(),
            "summary_lines": self.summary_lines,
            "tips": self.tips,
            "template_version": self.template_version,
        }


@dataclass
class CoachingNarrative:
    lines: list[str]
    meta: dict[str, Any]
    summary: dict[str, GroupStats]
    latest_reading: HealthRecord | None
    target_profile: TargetProfile | None
    user_note: str | None = None

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class LifestyleNarrative:
    lines: list[str]
    stats: dict[str, dict[str, GroupStats]]
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class CoachingResult:
    """A generated (or fallback) message and the coach log entry written for it."""

    message: str
    log_id: str
    used_fallback: bool
    guardrail_flags: list[str]
    window_days: float
    stats: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "log_id": self.log_id,
            "used_fallback": self.used_fallback,
            "guardrail_flags": self.guardrail_flags,
            "window_days": self.window_days,
            "stats": self.stats,
        }


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class HealthCoachService:
    """Coaching operations for one store, generator and template set.

    Usage::

        service = HealthCoachService(repo, coach_log, generator, load_default_templates())
        stats = service.compute_summary_stats("alice", 7)
        result = await service.generate_coaching("alice", 7, user_note="Slept badly")
    """

    def __init__(
        self,
        repository: HealthRepository,
        coach_log: CoachLogWriter,
        generator: NarrativeGenerator,
        templates: TemplateRegistry,
        *,
        max_output_tokens: int = 800,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.repository = repository
        self.coach_log = coach_log
        self.generator = generator
        self.templates = templates
        self.max_output_tokens = max_output_tokens
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _window(self, subject_id: str, days: float, kind: str | None = None) -> Window:
        self.repository.require_subject(subject_id)
        now = self._clock()
        start, end = window_bounds(days, now)
        records = self.repository.query_records(subject_id, kind=kind, since=start, until=end)
        return select_window(records, days, now)

    def _template(self, template_id: str) -> NarrativeTemplate:
        return self.templates.require(template_id)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def compute_summary_stats(self, subject_id: str, window_days: Any = None) -> SummaryReport:
        """Count and averages of blood pressure and blood sugar in the window."""
        days = parse_window_days(window_days, SUMMARY_WINDOW_DAYS)
        window = self._window(subject_id, days)
        return SummaryReport(
            days=days,
            start=window.start,
            end=window.end,
            blood_pressure=compute_stats(r for r in window.records if r.kind == "blood_pressure"),
            blood_sugar=compute_stats(r for r in window.records if r.kind == "blood_sugar"),
        )

    def compute_state_stats(self, subject_id: str, window_days: Any = None) -> StateStatsReport:
        """Blood pressure statistics grouped by measurement state."""
        days = parse_window_days(window_days, STATE_WINDOW_DAYS)
        return self._state_report(self._window(subject_id, days, kind="blood_pressure"))

    @staticmethod
    def _state_report(window: Window) -> StateStatsReport:
        return StateStatsReport(
            days=window.days,
            start=window.start,
            end=window.end,
            total_count=len(window.records),
            states=list(group_by_state(window.records).items()),
        )

    def compute_lifestyle_stats(self, subject_id: str, window_days: Any = None) -> LifestyleReport:
        """Sleep, exercise and stress groupings.

        Windows longer than 90 days are cut to 90. An empty window is not an
        error here.
        """
        days = min(parse_window_days(window_days, LIFESTYLE_WINDOW_DAYS), LIFESTYLE_MAX_WINDOW_DAYS)
        window = self._window(subject_id, days, kind="blood_pressure")
        return LifestyleReport(
            days=days,
            start=window.start,
            end=window.end,
            total_count=len(window.records),
            groups=lifestyle_groups(window.records),
        )

    def build_state_insight(self, subject_id: str, window_days: Any = None) -> StateInsight:
        """Rule-based tips comparing each measurement state with the overall mean."""
        template = self._template(STATE_TEMPLATE)
        days = parse_window_days(window_days, STATE_WINDOW_DAYS)
        window = self._window(subject_id, days, kind="blood_pressure")
        report = self._state_report(window)
        state_groups = dict(report.states)
        overall = compute_stats(window.records)

        summary_lines, tips = compose_state_insight(
            template,
            days=report.days,
            overall=overall,
            deviations=detect_state_deviations(state_groups, overall.avg_primary),
            stress_signal=detect_stress_deviation(state_groups, overall.avg_primary),
        )
        return StateInsight(
            report=report,
            summary_lines=summary_lines,
            tips=tips,
            template_version=template.version,
        )

    # ------------------------------------------------------------------
    # Narratives
    # ------------------------------------------------------------------

    def build_coaching_narrative(
        self,
        subject_id: str,
        window_days: Any = None,
        user_note: str | None = None,
    ) -> CoachingNarrative:
        """Compose the coaching prompt lines.

        The latest reading is taken from the whole history, not just the
        window. Empty sections render their placeholder sentences.
        """
        template = self._template(COACH_TEMPLATE)
        summary = self.compute_summary_stats(subject_id, parse_window_days(window_days, COACH_WINDOW_DAYS))
        latest = self.repository.latest_record(subject_id, "blood_pressure")
        profile = self.repository.get_target_profile(subject_id)
        note = user_note.strip() if user_note and user_note.strip() else None

        lines = compose_coaching(
            template,
            days=summary.days,
            blood_pressure=summary.blood_pressure,
            blood_sugar=summary.blood_sugar,
            latest=latest,
            profile=profile,
            note=note,
        )
        return CoachingNarrative(
            lines=lines,
            meta={
                "window_days": summary.days,
                "record_count": summary.blood_pressure.count + summary.blood_sugar.count,
                "has_user_note": note is not None,
                "template_version": template.version,
            },
            summary={"blood_pressure": summary.blood_pressure, "blood_sugar": summary.blood_sugar},
            latest_reading=latest,
            target_profile=profile,
            user_note=note,
        )

    def build_lifestyle_narrative(self, subject_id: str, window_days: Any = None) -> LifestyleNarrative:
        """Compose the lifestyle prompt lines.

        Raises:
            InsufficientDataError: No blood pressure readings in the window.
        """
        template = self._template(LIFESTYLE_TEMPLATE)
        report = self.compute_lifestyle_stats(subject_id, window_days)
        if report.total_count == 0:
            raise InsufficientDataError(
                f"No blood pressure readings in the last {report.days:g} days to analyse"
            )

        return LifestyleNarrative(
            lines=compose_lifestyle(template, days=report.days, groups=report.groups),
            stats=report.groups,
            meta={
                "window_days": report.days,
                "record_count": report.total_count,
                "template_version": template.version,
            },
        )

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def _generate(self, template: NarrativeTemplate, lines: list[str]) -> tuple[str, bool, list[str]]:
        try:
            text = await self.generator.generate(
                instructions=build_instructions(template),
                input_text="\n".join(lines),
                max_output_tokens=self.max_output_tokens,
            )
        except UpstreamGenerationError as exc:
            logger.warning("Using fallback message for %s narrative: %s", template.id, exc)
            return template.fallback_message, True, []
        text, flags = apply_guardrails(text, template)
        return text, False, flags

    async def generate_coaching(
        self,
        subject_id: str,
        window_days: Any = None,
        user_note: str | None = None,
    ) -> CoachingResult:
        """Generate a coaching comment and record it in the coach log.

        Raises:
            InsufficientDataError: Neither blood pressure nor blood sugar
                readings exist in the window.
        """
        narrative = self.build_coaching_narrative(subject_id, window_days, user_note)
        days = narrative.meta["window_days"]
        if narrative.meta["record_count"] == 0:
            raise InsufficientDataError(
                f"No blood pressure or blood sugar readings in the last {days:g} days"
            )

        template = self._template(COACH_TEMPLATE)
        message, used_fallback, flags = await self._generate(template, narrative.lines)
        log_id = self.coach_log.append(
            CoachLog(
                subject_id=subject_id,
                kind="coach",
                window_days=days,
                generated_text=message,
                source="bp_summary",
                user_note=narrative.user_note,
            )
        )
        return CoachingResult(
            message=message,
            log_id=log_id,
            used_fallback=used_fallback,
            guardrail_flags=flags,
            window_days=days,
            stats={key: stats.as_dict() for key, stats in narrative.summary.items()},
        )

    async def generate_lifestyle(self, subject_id: str, window_days: Any = None) -> CoachingResult:
        """Generate a lifestyle insight and record it in the coach log.

        Raises:
            InsufficientDataError: No blood pressure readings in the window.
                Nothing is logged in that case.
        """
        narrative = self.build_lifestyle_narrative(subject_id, window_days)
        days = narrative.meta["window_days"]

        template = self._template(LIFESTYLE_TEMPLATE)
        message, used_fallback, flags = await self._generate(template, narrative.lines)
        log_id = self.coach_log.append(
            CoachLog(
                subject_id=subject_id,
                kind="lifestyle",
                window_days=days,
                generated_text=message,
                source="lifestyle_stats",
            )
        )
        return CoachingResult(
            message=message,
            log_id=log_id,
            used_fallback=used_fallback,
            guardrail_flags=flags,
            window_days=days,
            stats=_grouped_dict(narrative.stats),
        )

    def coach_history(
        self,
        subject_id: str,
        limit: Any = None,
        offset: int = 0,
        kind: str | None = None,
    ) -> list[CoachLog]:
        """Newest-first page of the subject's coach log (limit defaults to 20, max 100)."""
        self.repository.require_subject(subject_id)
        return self.coach_log.history(
            subject_id, kind=kind, limit=clamp_history_limit(limit), offset=offset
        )
