"""Sehat Sathi – Notification Sweeps.

Two independent batch passes over the profile store:

* Outbreak sweep (hourly): advisory alert for every subscribed user with a
  saved location.
* Reminder sweep (daily): vaccination reminders for every dependent whose
  schedule entry is inside its due window, deduplicated per calendar day.

Both loops continue past per-user failures. There is no retry within a run;
the next scheduled run is the retry.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Callable

import structlog

from app.audit.log import AuditLog, AuditMessageType
from app.core.instrumentation import NOTIFICATION_COUNT
from app.integrations.advisories import AdvisorySource
from app.integrations.dispatcher import OutboundSender
from app.knowledge.content import ContentBundle
from app.profiles.store import Dependent, ProfileStore, UserProfile

logger = structlog.get_logger()


@dataclass(frozen=True)
class ScheduleEntry:
    name: str
    due_offset_days: int


# Simplified national schedule. Real schedules vary; consult official sources.
VACCINATION_SCHEDULE: tuple[ScheduleEntry, ...] = (
    ScheduleEntry("BCG", 0),
    ScheduleEntry("OPV-0", 0),
    ScheduleEntry("HepB-1", 0),
    ScheduleEntry("DPT-1", 42),  # 6 weeks
    ScheduleEntry("OPV-1", 42),
    ScheduleEntry("HepB-2", 28),
    ScheduleEntry("MMR-1", 270),  # 9 months
)

# An entry stays due for this many days after its offset (4-day inclusive window)
DUE_WINDOW_DAYS = 3


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole calendar days from ``start`` to ``end``; time of day is ignored."""
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    return (end - start).days


def due_entries(
    date_of_birth: date,
    today: date,
    schedule: tuple[ScheduleEntry, ...] = VACCINATION_SCHEDULE,
) -> list[ScheduleEntry]:
    days = days_between(date_of_birth, today)
    return [
        entry for entry in schedule
        if entry.due_offset_days <= days <= entry.due_offset_days + DUE_WINDOW_DAYS
    ]


def reminder_key(dependent_name: str, entry_name: str, today: date) -> str:
    """Dedup key. Includes the date, so a reminder repeats daily inside its window."""
    return f"{dependent_name}:{entry_name}:{today.isoformat()}"


@dataclass
class SweepReport:
    sweep: str
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int | str]:
        return asdict(self)


class NotificationScheduler:
    """Runs the outbreak and reminder sweeps.

    Sweeps never mutate profile fields; the only write is appending keys to a
    dependent's reminder ledger.
    """

    def __init__(
        self,
        store: ProfileStore,
        sender: OutboundSender,
        advisories: AdvisorySource,
        audit: AuditLog,
        content: ContentBundle,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._sender = sender
        self._advisories = advisories
        self._audit = audit
        self._content = content
        self._clock = clock

    # ──────────────────────────────────────────
    # Outbreak alerts
    # ──────────────────────────────────────────

    async def run_outbreak_sweep(self) -> SweepReport:
        report = SweepReport(sweep="outbreak")
        now = self._clock()
        for identity, profile in self._store.profiles():
            if not profile.subscribed or not profile.location:
                report.skipped += 1
                continue
            try:
                delivered = await self._send_outbreak_alert(identity, profile, now)
            except Exception as e:
                logger.error(
                    "sweep.outbreak.user_failed",
                    pseudonymous_id=profile.pseudonymous_id,
                    error=str(e),
                )
                delivered = False

            if delivered:
                report.sent += 1
            else:
                report.failed += 1
            NOTIFICATION_COUNT.labels(kind="alert", status="sent" if delivered else "failed").inc()

        logger.info("sweep.outbreak.completed", **report.as_dict())
        return report

    async def _send_outbreak_alert(self, identity: str, profile: UserProfile, now: datetime) -> bool:
        area = profile.location or ""
        advisory = await self._advisories.fetch_advisory(area)
        headline = self._content.text(
            profile.language.value,
            "outbreak_alert",
            area=area,
            date=now.strftime("%a %b %d %Y"),
        )
        if not await self._sender.send(identity, f"{headline}\n{advisory.message}"):
            return False
        self._audit.record(profile.pseudonymous_id, AuditMessageType.ALERT, advisory.message, "outbreak_alert")
        return True

    # ──────────────────────────────────────────
    # Vaccination reminders
    # ──────────────────────────────────────────

    async def run_reminder_sweep(self, today: date | None = None) -> SweepReport:
        report = SweepReport(sweep="reminder")
        today = today or self._clock().date()
        for identity, profile in self._store.profiles():
            if not profile.dependents:
                continue
            try:
                for dependent in list(profile.dependents):
                    await self._remind_dependent(identity, profile, dependent, today, report)
            except Exception as e:
                report.failed += 1
                logger.error(
                    "sweep.reminder.user_failed",
                    pseudonymous_id=profile.pseudonymous_id,
                    error=str(e),
                )

        logger.info("sweep.reminder.completed", **report.as_dict())
        return report

    async def _remind_dependent(
        self,
        identity: str,
        profile: UserProfile,
        dependent: Dependent,
        today: date,
        report: SweepReport,
    ) -> None:
        lang = profile.language.value
        for entry in due_entries(dependent.date_of_birth, today):
            key = reminder_key(dependent.name, entry.name, today)
            if key in dependent.reminders_sent:
                report.skipped += 1
                continue

            text = self._content.text(
                lang,
                "reminder_due",
                prefix=self._content.text(lang, "reminder_prefix"),
                name=dependent.name,
                vaccine=entry.name,
            )
            if not await self._sender.send(identity, text):
                report.failed += 1
                NOTIFICATION_COUNT.labels(kind="reminder", status="failed").inc()
                continue

            dependent.reminders_sent.add(key)
            self._audit.record(profile.pseudonymous_id, AuditMessageType.REMINDER, entry.name, "vaccination_reminder")
            report.sent += 1
            NOTIFICATION_COUNT.labels(kind="reminder", status="sent").inc()
