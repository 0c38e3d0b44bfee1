"""
Recording analytics.

Each section of the dashboard and of the conversation analytics is its own
query wrapped in safe_database_query: a failing section is logged, rolled
back and comes back as None, and the response lists it under `unavailable`
while the other sections are still returned.

A conversation is a recording; a conversion is a completed recording.
Date bucketing happens in Python so the same queries run on PostgreSQL,
MySQL and SQLite.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.analytics import (
    BranchConversionRate,
    BranchConversations,
    BranchCount,
    BranchMonthConversations,
    BranchMonthlyTrend,
    CityConversions,
    ConversationAnalytics,
    ConversationTotals,
    ConversionMetrics,
    DailyConversionTrend,
    DailyConversions,
    DailyCount,
    DashboardAnalytics,
    DashboardTotals,
    MonthlyStreams,
    MonthlyUniqueCnics,
    StatusCount,
    VoiceStreamAnalytics,
)
from api.services.device_service import DeviceService
from api.services.heartbeat_service import HeartbeatService
from api.services.recording_service import recording_status_expr, recordings_with_branch
from api.services.scoping import UNASSIGNED_BRANCH_NAME, BranchScope, apply_branch_scope
from core.decorators import critical_database_operation, safe_database_query
from db import Branch, HeartbeatStatus, Recording, RecordingStatus, utc_now

logger = logging.getLogger(__name__)

DAILY_WINDOW_DAYS = 30
TREND_WINDOW_DAYS = 7
MONTHLY_WINDOW = 12
# Completed conversations at least this long count as successful outcomes
SUCCESSFUL_OUTCOME_SECONDS = 120

CONVERSATION_SECTIONS = (
    "conversations_by_branch",
    "conversations_by_branch_month",
    "conversions_by_city",
    "daily_conversations",
    "unique_cnics_by_month",
    "total_stats",
    "conversion_metrics",
    "conversions_by_branch",
    "conversion_trends",
)

COMPLETED = RecordingStatus.COMPLETED.value


def _scoped(scope: BranchScope, *columns):
    return apply_branch_scope(recordings_with_branch(*columns), scope, Branch.id)


def _completed_count():
    return func.sum(case((recording_status_expr == COMPLETED, 1), else_=0))


def _day_start(value: date) -> datetime:
    return datetime.combine(value, datetime.min.time())


def _recent_days(now: datetime, days: int) -> List[date]:
    """The last `days` calendar days, oldest first, ending today."""
    first_day = (now - timedelta(days=days - 1)).date()
    return [first_day + timedelta(days=i) for i in range(days)]


def _recent_months(now: datetime, months: int) -> List[date]:
    """First day of each of the last `months` months, oldest first."""
    year, month = now.year, now.month
    firsts = []
    for _ in range(months):
        firsts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(firsts))


def month_key(value) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def normalized_cnic(cnic: Optional[str]) -> Optional[str]:
    """CNIC without dashes; None when empty."""
    if not cnic:
        return None
    return cnic.replace("-", "").strip() or None


def conversion_rate(part: int, whole: int) -> float:
    """Percentage rounded to one decimal; 0 when there is nothing to divide."""
    if not whole:
        return 0.0
    return round(part * 100.0 / whole, 1)


def conversation_seconds(
    start_time: Optional[datetime], end_time: Optional[datetime], stored: Optional[int]
) -> Optional[int]:
    if start_time and end_time:
        return max(int((end_time - start_time).total_seconds()), 0)
    return stored


async def _daily_conversions(db: AsyncSession, scope: BranchScope, days: List[date]) -> List[DailyConversions]:
    stmt = _scoped(scope, Recording.start_time, recording_status_expr).where(
        Recording.start_time >= _day_start(days[0])
    )

    totals: Dict[date, int] = {}
    converted: Dict[date, int] = {}
    for start_time, status in (await db.execute(stmt)).all():
        day = start_time.date()
        totals[day] = totals.get(day, 0) + 1
        if status == COMPLETED:
            converted[day] = converted.get(day, 0) + 1

    return [
        DailyConversions(
            date=day.isoformat(),
            conversion_count=converted.get(day, 0),
            total_conversations=totals.get(day, 0),
        )
        for day in days
    ]


class AnalyticsService:
    """Service assembling analytics from independent sources."""

    # ========================================================================
    # Dashboard
    # ========================================================================

    @staticmethod
    @safe_database_query("daily recordings")
    async def daily_recordings(db: AsyncSession, scope: BranchScope, now: datetime) -> List[DailyCount]:
        """Recordings per day over the last 30 days, zero-filled, oldest first."""
        days = _recent_days(now, DAILY_WINDOW_DAYS)
        stmt = _scoped(scope, Recording.start_time).where(Recording.start_time >= _day_start(days[0]))

        counts = {}
        for start_time in (await db.execute(stmt)).scalars().all():
            counts[start_time.date()] = counts.get(start_time.date(), 0) + 1

        return [DailyCount(day=day.isoformat(), count=counts.get(day, 0)) for day in days]

    @staticmethod
    @safe_database_query("recordings by status")
    async def recordings_by_status(db: AsyncSession, scope: BranchScope) -> List[StatusCount]:
        status_col = recording_status_expr.label("status")
        stmt = _scoped(scope, status_col, func.count(Recording.id)).group_by(status_col)
        counts = {status: count for status, count in (await db.execute(stmt)).all()}
        return [StatusCount(status=s.value, count=counts.get(s.value, 0)) for s in RecordingStatus]

    @staticmethod
    @safe_database_query("recordings by branch")
    async def recordings_by_branch(db: AsyncSession, scope: BranchScope) -> List[BranchCount]:
        stmt = (
            _scoped(scope, Branch.id, Branch.branch_name, func.count(Recording.id))
            .group_by(Branch.id, Branch.branch_name)
            .order_by(func.count(Recording.id).desc())
        )
        return [
            BranchCount(branch_id=branch_id, branch_name=branch_name or UNASSIGNED_BRANCH_NAME, count=count)
            for branch_id, branch_name, count in (await db.execute(stmt)).all()
        ]

    @staticmethod
    @safe_database_query("dashboard totals")
    async def totals(db: AsyncSession, scope: BranchScope, now: datetime) -> DashboardTotals:
        today_start = _day_start(now.date())
        is_today = and_(
            Recording.start_time >= today_start,
            Recording.start_time < today_start + timedelta(days=1),
        )
        counts_stmt = _scoped(
            scope,
            func.count(Recording.id),
            _completed_count(),
            func.sum(case((is_today, 1), else_=0)),
        )
        total_recordings, completed, today = (await db.execute(counts_stmt)).one()

        durations_stmt = _scoped(scope, Recording.start_time, Recording.end_time).where(
            Recording.start_time.is_not(None), Recording.end_time.is_not(None)
        )
        durations = [
            conversation_seconds(start, end, None)
            for start, end in (await db.execute(durations_stmt)).all()
        ]

        _, total_devices = await DeviceService.list_devices(db, scope, page=1, per_page=1)

        if scope.is_admin:
            branches_stmt = select(func.count(Branch.id)).where(Branch.is_active.is_(True))
            total_branches = (await db.execute(branches_stmt)).scalar_one()
        else:
            total_branches = 1

        statuses = await HeartbeatService.list_statuses(db, scope, now=now)
        online = sum(1 for row in statuses if row.status == HeartbeatStatus.ONLINE)

        return DashboardTotals(
            total_recordings=total_recordings,
            completed_recordings=int(completed or 0),
            avg_duration=round(sum(durations) / len(durations)) if durations else 0,
            today_recordings=int(today or 0),
            total_devices=total_devices,
            total_branches=total_branches,
            online_devices=online,
        )

    @staticmethod
    async def dashboard(
        db: AsyncSession, scope: BranchScope, now: Optional[datetime] = None
    ) -> DashboardAnalytics:
        now = now or utc_now()
        unavailable = []

        daily = await AnalyticsService.daily_recordings(db, scope, now)
        if daily is None:
            unavailable.append("daily_recordings")

        by_status = await AnalyticsService.recordings_by_status(db, scope)
        if by_status is None:
            unavailable.append("recordings_by_status")

        by_branch = await AnalyticsService.recordings_by_branch(db, scope)
        if by_branch is None:
            unavailable.append("recordings_by_branch")

        totals = await AnalyticsService.totals(db, scope, now)
        if totals is None:
            unavailable.append("totals")

        if unavailable:
            logger.warning(f"Dashboard served without: {', '.join(unavailable)}")

        return DashboardAnalytics(
            daily_recordings=daily or [],
            recordings_by_status=by_status or [],
            recordings_by_branch=by_branch or [],
            totals=totals,
            unavailable=unavailable,
        )

    # ========================================================================
    # Conversation analytics
    # Every section takes (db, scope, now) so they can be assembled in a loop.
    # ========================================================================

    @staticmethod
    @safe_database_query("conversations by branch")
    async def conversations_by_branch(
        db: AsyncSession, scope: BranchScope, now: datetime
    ) -> List[BranchConversations]:
        """All-time conversations per deployed branch, busiest first."""
        count = func.count(Recording.id)
        stmt = (
            _scoped(scope, Branch.id, Branch.branch_name, Branch.branch_city, count)
            .where(Branch.id.is_not(None))
            .group_by(Branch.id, Branch.branch_name, Branch.branch_city)
            .order_by(count.desc(), Branch.branch_name)
        )
        return [
            BranchConversations(branch_id=branch_id, branch_name=name, branch_city=city, count=total)
            for branch_id, name, city, total in (await db.execute(stmt)).all()
        ]

    @staticmethod
    @safe_database_query("conversations by branch per month")
    async def conversations_by_branch_month(
        db: AsyncSession, scope: BranchScope, now: datetime
    ) -> List[BranchMonthConversations]:
        """Conversations per branch per month over the last 12 months, newest month first."""
        since = _day_start(_recent_months(now, MONTHLY_WINDOW)[0])
        stmt = _scoped(
            scope, Branch.id, Branch.branch_name, Branch.branch_city, Recording.start_time
        ).where(Branch.id.is_not(None), Recording.start_time >= since)

        counts: Dict[tuple, int] = {}
        branches = {}
        for branch_id, name, city, start_time in (await db.execute(stmt)).all():
            key = (branch_id, month_key(start_time))
            counts[key] = counts.get(key, 0) + 1
            branches[branch_id] = (name, city)

        rows = [
            BranchMonthConversations(
                branch_id=branch_id,
                branch_name=branches[branch_id][0],
                branch_city=branches[branch_id][1],
                month=month,
                count=count,
            )
            for (branch_id, month), count in counts.items()
        ]
        rows.sort(key=lambda row: (row.month, row.count, -row.branch_id), reverse=True)
        return rows

    @staticmethod
    @safe_database_query("conversions by city")
    async def conversions_by_city(
        db: AsyncSession, scope: BranchScope, now: datetime
    ) -> List[CityConversions]:
        conversions = _completed_count().label("conversions")
        stmt = (
            _scoped(scope, Branch.branch_city, conversions, func.count(Recording.id))
            .where(Branch.branch_city.is_not(None))
            .group_by(Branch.branch_city)
            .order_by(conversions.desc(), Branch.branch_city)
        )
        return [
            CityConversions(city=city, conversion_count=int(converted or 0), total_conversations=total)
            for city, converted, total in (await db.execute(stmt)).all()
        ]

    @staticmethod
    @safe_database_query("daily conversations")
    async def daily_conversations(
        db: AsyncSession, scope: BranchScope, now: datetime
    ) -> List[DailyConversions]:
        """Conversations and conversions per day over the last 30 days, zero-filled."""
        return await _daily_conversions(db, scope, _recent_days(now, DAILY_WINDOW_DAYS))

    @staticmethod
    @safe_database_query("unique CNICs by month")
    async def unique_cnics_by_month(
        db: AsyncSession, scope: BranchScope, now: datetime
    ) -> List[MonthlyUniqueCnics]:
        """Distinct customers (CNIC without dashes) per month over the last 12 months."""
        months = [month_key(first) for first in _recent_months(now, MONTHLY_WINDOW)]
        stmt = _scoped(scope, Recording.start_time, Recording.cnic).where(
            Recording.start_time >= _day_start(_recent_months(now, MONTHLY_WINDOW)[0])
        )

        seen: Dict[str, set] = {month: set() for month in months}
        for start_time, cnic in (await db.execute(stmt)).all():
            cnic = normalized_cnic(cnic)
            if cnic and month_key(start_time) in seen:
                seen[month_key(start_time)].add(cnic)

        return [MonthlyUniqueCnics(month=month, unique_cnic_count=len(seen[month])) for month in months]

    @staticmethod
    @safe_database_query("conversation totals")
    async def total_stats(db: AsyncSession, scope: BranchScope, now: datetime) -> ConversationTotals:
        """Totals over the last 12 months."""
        since = _day_start(_recent_months(now, MONTHLY_WINDOW)[0])
        stmt = _scoped(scope, Recording.start_time, Recording.cnic, Branch.id).where(
            Recording.start_time >= since
        )
        rows = (await db.execute(stmt)).all()

        customers = {normalized_cnic(cnic) for _, cnic, _ in rows} - {None}
        branches = {branch_id for _, _, branch_id in rows if branch_id is not None}
        today = sum(1 for start_time, _, _ in rows if start_time.date() == now.date())

        return ConversationTotals(
            total_conversations=len(rows),
            unique_customers=len(customers),
            active_branches=len(branches),
            today_conversations=today,
        )

    @staticmethod
    @safe_database_query("conversion metrics")
    async def conversion_metrics(db: AsyncSession, scope: BranchScope, now: datetime) -> ConversionMetrics:
        """Conversion rate, average length and successful outcomes over the last 30 days."""
        since = _day_start(_recent_days(now, DAILY_WINDOW_DAYS)[0])
        stmt = _scoped(
            scope,
            recording_status_expr,
            Recording.start_time,
            Recording.end_time,
            Recording.duration_seconds,
        ).where(Recording.start_time >= since)
        rows = (await db.execute(stmt)).all()

        conversions = 0
        successful = 0
        durations = []
        for status, start_time, end_time, stored in rows:
            seconds = conversation_seconds(start_time, end_time, stored)
            if seconds is not None:
                durations.append(seconds)
            if status == COMPLETED:
                conversions += 1
                if end_time is not None and seconds is not None and seconds >= SUCCESSFUL_OUTCOME_SECONDS:
                    successful += 1

        return ConversionMetrics(
            total_conversions=conversions,
            conversion_rate=conversion_rate(conversions, len(rows)),
            avg_conversation_duration=round(sum(durations) / len(durations)) if durations else 0,
            successful_outcomes=successful,
        )

    @staticmethod
    @safe_database_query("conversion rate by branch")
    async def conversions_by_branch(
        db: AsyncSession, scope: BranchScope, now: datetime
    ) -> List[BranchConversionRate]:
        """Conversion rate per branch over the last 30 days, best first."""
        since = _day_start(_recent_days(now, DAILY_WINDOW_DAYS)[0])
        stmt = _scoped(scope, Branch.branch_name, recording_status_expr).where(
            Recording.start_time >= since
        )

        totals: Dict[str, int] = {}
        converted: Dict[str, int] = {}
        for name, status in (await db.execute(stmt)).all():
            name = name or UNASSIGNED_BRANCH_NAME
            totals[name] = totals.get(name, 0) + 1
            if status == COMPLETED:
                converted[name] = converted.get(name, 0) + 1

        rows = [
            BranchConversionRate(
                branch_name=name,
                total_conversations=total,
                successful_conversions=converted.get(name, 0),
                conversion_rate=conversion_rate(converted.get(name, 0), total),
            )
            for name, total in totals.items()
        ]
        rows.sort(key=lambda row: (-row.conversion_rate, row.branch_name))
        return rows

    @staticmethod
    @safe_database_query("conversion trends")
    async def conversion_trends(
        db: AsyncSession, scope: BranchScope, now: datetime
    ) -> List[DailyConversionTrend]:
        """Daily conversion rate over the last 7 days, zero-filled."""
        daily = await _daily_conversions(db, scope, _recent_days(now, TREND_WINDOW_DAYS))
        return [
            DailyConversionTrend(
                date=day.date,
                conversations=day.total_conversations,
                conversions=day.conversion_count,
                conversion_rate=conversion_rate(day.conversion_count, day.total_conversations),
            )
            for day in daily
        ]

    @staticmethod
    async def conversations(
        db: AsyncSession, scope: BranchScope, now: Optional[datetime] = None
    ) -> ConversationAnalytics:
        now = now or utc_now()
        sections = {}
        for name in CONVERSATION_SECTIONS:
            sections[name] = await getattr(AnalyticsService, name)(db, scope, now)

        unavailable = [name for name, value in sections.items() if value is None]
        if unavailable:
            logger.warning(f"Conversation analytics served without: {', '.join(unavailable)}")

        return ConversationAnalytics(
            **{name: value for name, value in sections.items() if value is not None},
            unavailable=unavailable,
        )

    # ========================================================================
    # Voice streams and monthly trend
    # ========================================================================

    @staticmethod
    @critical_database_operation("voice stream analytics")
    async def voice_streams(
        db: AsyncSession, scope: BranchScope, now: Optional[datetime] = None
    ) -> VoiceStreamAnalytics:
        """All-time stream count plus the last 12 months, zero-filled, oldest first."""
        now = now or utc_now()
        months = _recent_months(now, MONTHLY_WINDOW)

        total = (await db.execute(_scoped(scope, func.count(Recording.id)))).scalar_one()

        stmt = _scoped(scope, Recording.start_time).where(Recording.start_time >= _day_start(months[0]))
        counts: Dict[str, int] = {}
        for start_time in (await db.execute(stmt)).scalars().all():
            counts[month_key(start_time)] = counts.get(month_key(start_time), 0) + 1

        monthly = [
            MonthlyStreams(
                month=month_key(first),
                formatted_month=first.strftime("%b %Y"),
                voice_streams=counts.get(month_key(first), 0),
            )
            for first in months
        ]
        return VoiceStreamAnalytics(
            total_streams=total,
            current_month_streams=monthly[-1].voice_streams,
            previous_month_streams=monthly[-2].voice_streams,
            monthly_data=monthly,
        )

    @staticmethod
    @critical_database_operation("branch monthly trend")
    async def branch_monthly_trend(db: AsyncSession, scope: BranchScope) -> List[BranchMonthlyTrend]:
        """Recordings per branch code per calendar month, all time."""
        stmt = _scoped(scope, Branch.branch_code, Recording.start_time).where(
            Branch.branch_code.is_not(None), Recording.start_time.is_not(None)
        )
        counts: Dict[tuple, int] = {}
        for code, start_time in (await db.execute(stmt)).all():
            key = (code, start_time.year, start_time.month)
            counts[key] = counts.get(key, 0) + 1

        return [
            BranchMonthlyTrend(branch_code=code, year=year, month=month, total_records=count)
            for (code, year, month), count in sorted(counts.items())
        ]
