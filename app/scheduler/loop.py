"""Sehat Sathi – Sweep Scheduler Loop.

Drives the outbreak and reminder sweeps from two cron expressions. Only the
minute and hour fields are honoured (``*``, ``*/n`` or a number); the day,
month and weekday fields must be present but are ignored. Times are process
local.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional

import structlog

from app.scheduler.sweeps import NotificationScheduler

logger = structlog.get_logger()

Sweep = Callable[[], Awaitable[object]]


def _number(token: str) -> Optional[int]:
    return int(token) if token.isascii() and token.isdigit() else None


@dataclass(frozen=True)
class CronField:
    """One time field: ``step`` for ``*`` / ``*/n``, ``exact`` for a number."""

    step: int = 1
    exact: Optional[int] = None

    @classmethod
    def parse(cls, token: str, upper: int) -> Optional[CronField]:
        if token == "*":
            return cls()
        if token.startswith("*/"):
            step = _number(token[2:])
            return cls(step=step) if step else None
        exact = _number(token)
        return cls(exact=exact) if exact is not None and exact <= upper else None

    def matches(self, value: int) -> bool:
        if self.exact is not None:
            return value == self.exact
        return value % self.step == 0


@dataclass(frozen=True)
class CronSchedule:
    minute: CronField
    hour: CronField

    @classmethod
    def parse(cls, expr: str) -> Optional[CronSchedule]:
        """None when ``expr`` is not a five-field expression we can honour."""
        fields = (expr or "").split()
        if len(fields) != 5:
            return None
        minute = CronField.parse(fields[0], upper=59)
        hour = CronField.parse(fields[1], upper=23)
        if minute is None or hour is None:
            return None
        return cls(minute=minute, hour=hour)

    def matches(self, now: datetime) -> bool:
        return self.minute.matches(now.minute) and self.hour.matches(now.hour)


def cron_due(expr: str, now: datetime) -> bool:
    schedule = CronSchedule.parse(expr)
    return schedule is not None and schedule.matches(now)


async def _run_sweep(name: str, sweep: Sweep) -> None:
    try:
        await sweep()
    except Exception as e:
        logger.error("scheduler.job_failed", job=name, error=str(e))


def _schedules(jobs: dict[str, tuple[str, Sweep]]) -> dict[str, tuple[CronSchedule, Sweep]]:
    parsed = {}
    for name, (expr, sweep) in jobs.items():
        schedule = CronSchedule.parse(expr)
        if schedule is None:
            logger.warning("scheduler.invalid_cron", job=name, cron=expr)
            continue
        parsed[name] = (schedule, sweep)
    return parsed


async def scheduler_loop(
    scheduler: NotificationScheduler,
    outbreak_cron: str,
    reminder_cron: str,
    poll_seconds: float = 30.0,
    clock: Callable[[], datetime] = datetime.now,
) -> None:
    """Fire each sweep at most once per matching minute.

    A sweep whose expression does not parse is logged and never fires. Every
    firing gets its own task; tasks still running are cancelled on shutdown.
    """
    schedules = _schedules({
        "outbreak": (outbreak_cron, scheduler.run_outbreak_sweep),
        "reminder": (reminder_cron, scheduler.run_reminder_sweep),
    })
    logger.info("scheduler.started", jobs=sorted(schedules))

    fired_at: dict[str, str] = {}
    in_flight: set[asyncio.Task] = set()
    try:
        while True:
            now = clock()
            minute = now.strftime("%Y-%m-%dT%H:%M")
            for name, (schedule, sweep) in schedules.items():
                if fired_at.get(name) == minute or not schedule.matches(now):
                    continue
                fired_at[name] = minute
                logger.info("scheduler.job_started", job=name, tick=minute)
                task = asyncio.create_task(_run_sweep(name, sweep), name=f"sweep-{name}")
                in_flight.add(task)
                task.add_done_callback(in_flight.discard)
            await asyncio.sleep(poll_seconds)
    finally:
        for task in in_flight:
            task.cancel()
        logger.info("scheduler.stopped")
