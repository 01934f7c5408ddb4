"""Unit tests for clock persistence and timekeeper leader election"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from gameztarz_bank.infrastructure.clock.timekeeper import Timekeeper
from gameztarz_bank.infrastructure.database.repositories import ClockRepository, TimekeeperLeaseRepository

EPOCH = datetime(1900, 1, 1, tzinfo=timezone.utc)


class FakeWallClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def session_factory(db):
    return sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())


def make_timekeeper(session_factory, holder, wall_clock, **kwargs):
    return Timekeeper(
        session_factory=session_factory,
        holder_id=holder,
        step=timedelta(days=1),
        tick_seconds=0.01,
        lease_seconds=90,
        epoch=EPOCH,
        wall_clock=wall_clock,
        **kwargs,
    )


def test_clock_defaults_to_epoch(db):
    assert ClockRepository(db, EPOCH).read() == EPOCH


def test_clock_write_and_read(db):
    clock = ClockRepository(db, EPOCH)
    target = datetime(2031, 2, 3, tzinfo=timezone.utc)

    assert clock.write(target) is True
    db.commit()
    assert clock.read() == target


def test_advance_is_conditional(db):
    clock = ClockRepository(db, EPOCH)
    clock.read()
    day_one = EPOCH + timedelta(days=1)

    assert clock.advance(EPOCH, day_one) is True
    # A second writer still holding the old value cannot double-step
    assert clock.advance(EPOCH, day_one) is False
    assert clock.read() == day_one


def test_only_leader_advances(session_factory):
    wall = FakeWallClock()
    leader = make_timekeeper(session_factory, "a", wall)
    follower = make_timekeeper(session_factory, "b", wall)

    assert leader.tick() == EPOCH + timedelta(days=1)
    assert follower.tick() is None
    assert leader.tick() == EPOCH + timedelta(days=2)

    assert leader.is_leader is True
    assert follower.is_leader is False
    assert follower.observe() == EPOCH + timedelta(days=2)


def test_expired_lease_is_taken_over(session_factory):
    wall = FakeWallClock()
    leader = make_timekeeper(session_factory, "a", wall)
    standby = make_timekeeper(session_factory, "b", wall)
    leader.tick()

    # Leader stops renewing; its lease expires
    wall.now += 91
    assert standby.tick() == EPOCH + timedelta(days=2)
    assert standby.is_leader is True

    wall.now += 1
    assert leader.tick() is None
    assert leader.is_leader is False


def test_lease_release(db):
    leases = TimekeeperLeaseRepository(db)

    assert leases.try_acquire("a", 90, 1000) is True
    assert leases.try_acquire("b", 90, 1010) is False
    assert leases.current_holder(1010) == "a"

    leases.release("a")
    assert leases.current_holder(1010) is None
    assert leases.try_acquire("b", 90, 1010) is True


def test_run_ticks_until_stopped(session_factory):
    keeper = make_timekeeper(session_factory, "runner", FakeWallClock())

    async def scenario():
        task = asyncio.create_task(keeper.run())
        await asyncio.sleep(0.1)
        keeper.stop()
        await task

    asyncio.run(scenario())

    assert keeper.observe() > EPOCH
    assert keeper.is_leader is False
    with session_factory() as db:
        assert TimekeeperLeaseRepository(db).current_holder(1000) is None
