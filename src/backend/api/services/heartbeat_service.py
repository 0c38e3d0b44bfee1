"""
Heartbeat ingest and the per-device status listing.

Ingest is write-only and unauthenticated: each call stores one immutable
row and, when a MAC is reported, makes sure the device exists. The listing
collapses heartbeats to one row per reporting identity and derives status
from the latest one.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.heartbeat import DeviceHeartbeatStatus, HeartbeatCreate
from api.services.device_identity import (
    device_match_clause,
    identity_key,
    normalize_ip,
    normalize_mac,
)
from api.services.device_service import DeviceService
from api.services.device_status import (
    StatusThresholds,
    age_minutes,
    derive_status,
    estimate_uptime_seconds,
    format_uptime,
    summarize,
)
from api.services.scoping import UNASSIGNED_BRANCH_NAME, BranchScope, apply_branch_scope
from core.config import settings
from core.decorators import critical_database_operation, transactional_database_operation
from core.exceptions import ValidationError
from core.metrics import heartbeats_ingested
from db import Branch, Deployment, Device, Heartbeat, HeartbeatStatus, utc_now

logger = logging.getLogger(__name__)


class HeartbeatService:
    """Service for device heartbeats."""

    @staticmethod
    @transactional_database_operation("record heartbeat")
    async def record_heartbeat(db: AsyncSession, payload: HeartbeatCreate) -> Heartbeat:
        """
        Store a heartbeat and auto-register an unknown MAC.

        Raises:
            ValidationError: IP missing/blank or MAC malformed
        """
        ip_address = normalize_ip(payload.ip_address)
        if not ip_address:
            raise ValidationError("IP address is required")

        try:
            mac_address = normalize_mac(payload.mac_address)
        except ValueError as e:
            raise ValidationError(str(e))

        heartbeat = Heartbeat(
            ip_address=ip_address,
            mac_address=mac_address,
            identity_key=identity_key(mac_address, ip_address),
            received_at=utc_now(),
        )
        db.add(heartbeat)
        await db.flush()

        if mac_address:
            await DeviceService.register_if_unknown(db, mac_address, ip_address)

        heartbeats_ingested.labels(has_mac="true" if mac_address else "false").inc()
        logger.debug(f"Heartbeat {heartbeat.id} from {heartbeat.identity_key}")
        return heartbeat

    @staticmethod
    @critical_database_operation("list heartbeat statuses")
    async def list_statuses(
        db: AsyncSession,
        scope: BranchScope,
        status: Optional[HeartbeatStatus] = None,
        now: Optional[datetime] = None,
    ) -> List[DeviceHeartbeatStatus]:
        """
        One row per identity with its latest heartbeat and derived status.

        Ordered by last_seen, newest first. The status filter is applied
        after derivation.
        """
        now = now or utc_now()
        window_start = now - timedelta(hours=settings.heartbeat.uptime_window_hours)
        thresholds = StatusThresholds.from_settings()

        per_identity = (
            select(
                Heartbeat.identity_key.label("identity_key"),
                func.max(Heartbeat.received_at).label("last_seen"),
                func.sum(case((Heartbeat.received_at >= window_start, 1), else_=0)).label("recent_count"),
            )
            .group_by(Heartbeat.identity_key)
            .subquery()
        )
        # Highest id among rows sharing the latest timestamp
        latest_ids = (
            select(func.max(Heartbeat.id).label("id"))
            .join(
                per_identity,
                and_(
                    Heartbeat.identity_key == per_identity.c.identity_key,
                    Heartbeat.received_at == per_identity.c.last_seen,
                ),
            )
            .group_by(Heartbeat.identity_key)
            .subquery()
        )

        stmt = (
            select(
                Heartbeat,
                per_identity.c.recent_count,
                Device.id,
                Device.device_name,
                Branch.id,
                Branch.branch_code,
                Branch.branch_name,
                Branch.branch_city,
            )
            .join(latest_ids, Heartbeat.id == latest_ids.c.id)
            .join(per_identity, Heartbeat.identity_key == per_identity.c.identity_key)
            .outerjoin(
                Device,
                and_(
                    device_match_clause(Heartbeat.mac_address, Heartbeat.ip_address),
                    Device.is_deleted.is_(False),
                ),
            )
            .outerjoin(Deployment, Deployment.device_id == Device.id)
            .outerjoin(Branch, Branch.id == Deployment.branch_id)
            .order_by(Heartbeat.received_at.desc(), Heartbeat.id.desc())
        )
        stmt = apply_branch_scope(stmt, scope, Branch.id)

        rows = (await db.execute(stmt)).all()

        statuses = []
        for hb, recent_count, device_id, device_name, branch_id, branch_code, branch_name, branch_city in rows:
            derived = derive_status(hb.received_at, now, thresholds)
            if status is not None and derived != HeartbeatStatus(status):
                continue
            statuses.append(
                DeviceHeartbeatStatus(
                    identity=hb.identity_key,
                    ip_address=hb.ip_address,
                    mac_address=hb.mac_address,
                    device_id=device_id,
                    device_name=device_name,
                    branch_id=branch_id,
                    branch_code=branch_code,
                    branch_name=branch_name or UNASSIGNED_BRANCH_NAME,
                    branch_city=branch_city,
                    last_seen=hb.received_at,
                    status=derived,
                    age_minutes=round(max(age_minutes(hb.received_at, now), 0.0), 2),
                    heartbeats_24h=int(recent_count or 0),
                    uptime=format_uptime(estimate_uptime_seconds(int(recent_count or 0))),
                )
            )
        return statuses

    @staticmethod
    async def summary(db: AsyncSession, scope: BranchScope, now: Optional[datetime] = None) -> dict:
        """Counts per derived status over the caller's visible devices."""
        rows = await HeartbeatService.list_statuses(db, scope, now=now)
        return summarize(row.status for row in rows)
