"""Elected timekeeper that advances the shared simulated clock"""

import asyncio
import logging
import time
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from gameztarz_bank.config import settings
from gameztarz_bank.infrastructure.database.repositories import ClockRepository, TimekeeperLeaseRepository
from gameztarz_bank.infrastructure.database.session import SessionFactory, SessionLocal, session_scope
from gameztarz_bank.infrastructure.observability.metrics import clock_tick_counter
from gameztarz_bank.utils.date_utils import parse_timestamp

logger = logging.getLogger(__name__)


class Timekeeper:
    """
    Advances the global clock while holding the timekeeper lease.

    Every process may run one; only the lease holder moves the clock. A
    process that loses the lease keeps trying to reacquire it, so a crashed
    leader is replaced once its lease expires.
    """

    def __init__(
        self,
        session_factory: SessionFactory = SessionLocal,
        holder_id: str | None = None,
        step: timedelta | None = None,
        tick_seconds: float | None = None,
        lease_seconds: float | None = None,
        epoch: datetime | None = None,
        wall_clock: Callable[[], float] = time.time,
    ):
        self.session_factory = session_factory
        self.holder_id = holder_id or f"timekeeper-{uuid.uuid4()}"
        self.step = step or timedelta(days=settings.clock_step_days)
        self.tick_seconds = tick_seconds if tick_seconds is not None else settings.clock_tick_seconds
        self.lease_seconds = lease_seconds if lease_seconds is not None else settings.timekeeper_lease_seconds
        self.epoch = epoch or parse_timestamp(settings.clock_epoch)
        self.wall_clock = wall_clock
        self.is_leader = False
        self._stopped = asyncio.Event()

    def tick(self) -> Optional[datetime]:
        """
        Renew the lease and, if still the leader, advance the clock one step.

        Returns the new simulated time, or None when this process is not the
        leader or another writer moved the clock first.
        """
        with session_scope(self.session_factory) as db:
            leases = TimekeeperLeaseRepository(db)
            acquired = leases.try_acquire(self.holder_id, self.lease_seconds, self.wall_clock())
            if acquired != self.is_leader:
                logger.info(
                    "Timekeeper leadership changed",
                    extra={"holder": self.holder_id, "leader": acquired},
                )
            self.is_leader = acquired
            if not acquired:
                return None

            clock = ClockRepository(db, self.epoch)
            current = clock.read()
            advanced = current + self.step
            if not clock.advance(current, advanced):
                logger.warning("Clock moved by another writer", extra={"holder": self.holder_id})
                return None

        clock_tick_counter.inc()
        logger.debug("Clock advanced", extra={"simulated_now": advanced.isoformat()})
        return advanced

    def observe(self) -> datetime:
        """Current simulated time without touching leadership"""
        with session_scope(self.session_factory) as db:
            return ClockRepository(db, self.epoch).read()

    async def run(self) -> None:
        logger.info("Timekeeper started", extra={"holder": self.holder_id})
        while not self._stopped.is_set():
            try:
                await asyncio.to_thread(self.tick)
            except Exception as e:
                logger.error(f"Timekeeper tick failed: {e}", extra={"holder": self.holder_id})
                self.is_leader = False

            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.tick_seconds)
            except asyncio.TimeoutError:
                pass

        await asyncio.to_thread(self._release)
        logger.info("Timekeeper stopped", extra={"holder": self.holder_id})

    def stop(self) -> None:
        self._stopped.set()

    def _release(self) -> None:
        with session_scope(self.session_factory) as db:
            TimekeeperLeaseRepository(db).release(self.holder_id)
        self.is_leader = False
