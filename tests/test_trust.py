import pytest
from sqlalchemy import select

from core.errors import InvalidInput, NotFound, RateLimited
from models.abuse_report import SYSTEM_REPORTER_ID, AbuseReport
from models.kv_entry import KVEntry
from services import matches, trust

pytestmark = pytest.mark.anyio


async def report_from(db, make_user, target, count):
    for _ in range(count):
        reporter = await make_user()
        await trust.report(db, reporter.id, target.id, "harassment", "rude messages")


async def test_report_is_stored_pending(db, make_user):
    reporter = await make_user()
    target = await make_user()

    abuse_report = await trust.report(db, reporter.id, target.id, "fake_profile", "  sends links  ")

    assert abuse_report.status == "pending"
    assert abuse_report.description == "sends links"
    assert await trust.restriction_level(db, target.id) is None


async def test_report_validation(db, make_user):
    reporter = await make_user()
    target = await make_user()
    with pytest.raises(InvalidInput):
        await trust.report(db, reporter.id, reporter.id, "fake_profile", "me")
    with pytest.raises(InvalidInput):
        await trust.report(db, reporter.id, target.id, "rudeness", "bad")
    with pytest.raises(InvalidInput):
        await trust.report(db, reporter.id, target.id, "fake_profile", "   ")
    with pytest.raises(NotFound):
        await trust.report(db, reporter.id, 999, "fake_profile", "ghost")


async def test_same_target_once_per_day(db, make_user, frozen_clock):
    reporter = await make_user()
    target = await make_user()
    await trust.report(db, reporter.id, target.id, "fake_profile", "first")

    frozen_clock.advance(hours=23)
    with pytest.raises(RateLimited):
        await trust.report(db, reporter.id, target.id, "fake_profile", "second")

    frozen_clock.advance(hours=2)
    again = await trust.report(db, reporter.id, target.id, "fake_profile", "next day")
    assert again.status == "pending"


async def test_three_reports_flag_user(db, make_user):
    target = await make_user()

    await report_from(db, make_user, target, 2)
    assert await trust.restriction_level(db, target.id) is None

    await report_from(db, make_user, target, 1)
    assert await trust.restriction_level(db, target.id) == trust.FLAGGED
    assert target.id in await trust.flagged_user_ids(db)

    await report_from(db, make_user, target, 1)
    assert await trust.restriction_level(db, target.id) == trust.FLAGGED
    assert target.id not in await trust.restricted_user_ids(db)

    await report_from(db, make_user, target, 1)
    assert await trust.restriction_level(db, target.id) == trust.RESTRICTED


async def test_five_reports_restrict_user_and_log_system_report(db, make_user):
    target = await make_user()

    await report_from(db, make_user, target, 5)

    assert await trust.restriction_level(db, target.id) == trust.RESTRICTED
    assert target.id in await trust.restricted_user_ids(db)
    res = await db.execute(
        select(AbuseReport).where(AbuseReport.reporter_id == SYSTEM_REPORTER_ID)
    )
    [system_report] = res.scalars().all()
    assert system_report.reported_user_id == target.id
    assert system_report.report_type == "system"
    assert system_report.status == "investigating"


async def test_reports_outside_window_do_not_count(db, make_user, frozen_clock):
    target = await make_user()
    await report_from(db, make_user, target, 2)
    frozen_clock.advance(days=8)

    await report_from(db, make_user, target, 1)

    assert await trust.count_recent_reports(db, target.id) == 1
    assert await trust.restriction_level(db, target.id) is None


async def test_moderating_restricted_user_keeps_single_restriction(db, make_user, frozen_clock):
    target = await make_user()
    await report_from(db, make_user, target, 5)
    restriction = await db.get(KVEntry, trust.restricted_key(target.id))
    expires_at = restriction.expires_at

    frozen_clock.advance(days=1)
    res = await db.execute(
        select(AbuseReport).where(
            AbuseReport.reported_user_id == target.id,
            AbuseReport.reporter_id != SYSTEM_REPORTER_ID,
        )
    )
    for abuse_report in res.scalars().all()[:3]:
        await trust.update_report_status(db, abuse_report.id, "resolved")
    await report_from(db, make_user, target, 1)

    assert await trust.restriction_level(db, target.id) == trust.RESTRICTED
    system_reports = await db.execute(
        select(AbuseReport.id).where(AbuseReport.reporter_id == SYSTEM_REPORTER_ID)
    )
    assert len(system_reports.all()) == 1
    restriction = await db.get(KVEntry, trust.restricted_key(target.id), populate_existing=True)
    assert restriction.expires_at == expires_at


async def test_dismissing_reports_clears_flag(db, make_user):
    target = await make_user()
    await report_from(db, make_user, target, 3)
    res = await db.execute(select(AbuseReport).where(AbuseReport.reported_user_id == target.id))
    first = res.scalars().first()

    updated = await trust.update_report_status(db, first.id, "dismissed")

    assert updated.status == "dismissed"
    assert await trust.restriction_level(db, target.id) is None


async def test_update_report_status_validation(db, make_user):
    with pytest.raises(InvalidInput):
        await trust.update_report_status(db, 1, "closed")
    with pytest.raises(NotFound):
        await trust.update_report_status(db, 12345, "resolved")


async def test_block_is_symmetric(db, make_user):
    alice = await make_user()
    bob = await make_user()

    await trust.block(db, alice.id, bob.id)

    assert await trust.is_blocked(db, alice.id, bob.id)
    assert await trust.is_blocked(db, bob.id, alice.id)
    assert await trust.list_blocked(db, alice.id) == {bob.id}
    assert await trust.list_blocked(db, bob.id) == {alice.id}


async def test_block_validation(db, make_user):
    alice = await make_user()
    with pytest.raises(InvalidInput):
        await trust.block(db, alice.id, alice.id)
    with pytest.raises(NotFound):
        await trust.block(db, alice.id, 777)


async def test_unblock_declines_blocked_match(db, make_user):
    alice = await make_user()
    bob = await make_user()
    match = await matches.propose(db, alice.id, bob.id)
    await trust.block(db, alice.id, bob.id)

    await trust.unblock(db, bob.id, alice.id)

    assert not await trust.is_blocked(db, alice.id, bob.id)
    assert not await trust.is_blocked(db, bob.id, alice.id)
    released = await matches.find_pair(db, alice.id, bob.id)
    assert released.id == match.id
    assert released.status == "declined"


async def test_safety_stats_ignore_system_reports(db, make_user):
    target = await make_user()
    await report_from(db, make_user, target, 5)

    stats = await trust.safety_stats(db)

    assert stats["total_reports"] == 5
    assert stats["pending_reports"] == 5
    assert stats["recent_reports"] == 5
