"""
Recording metadata service.

Recordings carry no status column; status comes from one SQL CASE shared by
listing, filtering and analytics. A recording belongs to a branch through
the device that made it (matched by MAC, else IP) and that device's
deployment.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.recording import RecordingFinish, RecordingRead, RecordingStart
from api.services import recording_storage
from api.services.device_identity import device_match_clause, normalize_ip, normalize_mac
from api.services.scoping import BranchScope, apply_branch_scope
from core.decorators import critical_database_operation, transactional_database_operation
from core.exceptions import NotFoundError, ValidationError
from core.metrics import recordings_uploaded
from db import Branch, Deployment, Device, Recording, RecordingStatus, utc_now

logger = logging.getLogger(__name__)

recording_status_expr = case(
    (
        and_(
            Recording.end_time.is_not(None),
            Recording.file_name.is_not(None),
            Recording.file_name != "",
        ),
        RecordingStatus.COMPLETED.value,
    ),
    (
        and_(Recording.start_time.is_not(None), Recording.end_time.is_(None)),
        RecordingStatus.IN_PROGRESS.value,
    ),
    else_=RecordingStatus.FAILED.value,
)


def recordings_with_branch(*columns):
    """SELECT over recordings joined to device, deployment and branch."""
    return (
        select(*columns)
        .select_from(Recording)
        .outerjoin(
            Device,
            and_(
                device_match_clause(Recording.mac_address, Recording.ip_address),
                Device.is_deleted.is_(False),
            ),
        )
        .outerjoin(Deployment, Deployment.device_id == Device.id)
        .outerjoin(Branch, Branch.id == Deployment.branch_id)
    )


def duration_of(recording: Recording) -> Optional[int]:
    """Stored duration, else end - start."""
    if recording.duration_seconds is not None:
        return recording.duration_seconds
    if recording.start_time and recording.end_time:
        return max(int((recording.end_time - recording.start_time).total_seconds()), 0)
    return None


def parse_timestamp(value: str, field: str) -> datetime:
    """
    Parse an ISO 8601 timestamp into naive UTC.

    Raises:
        ValidationError: Not a valid timestamp
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid {field}: expected ISO 8601 timestamp")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _recording_read(recording, status, device_id, device_name, branch_id, branch_name) -> RecordingRead:
    return RecordingRead(
        **recording.model_dump(exclude={"duration_seconds"}),
        duration_seconds=duration_of(recording),
        status=status,
        device_id=device_id,
        device_name=device_name,
        branch_id=branch_id,
        branch_name=branch_name,
        playback_url=recording_storage.playback_url(recording.file_name),
    )


class RecordingService:
    """Service for voice recordings."""

    @staticmethod
    @critical_database_operation("list recordings")
    async def list_recordings(
        db: AsyncSession,
        scope: BranchScope,
        page: int = 1,
        per_page: int = 20,
        search: Optional[str] = None,
        device: Optional[str] = None,
        branch_id: Optional[int] = None,
        status: Optional[RecordingStatus] = None,
    ) -> Tuple[List[RecordingRead], int]:
        """
        Page of recordings visible to the caller, newest first.

        Args:
            search: CNIC substring
            device: Exact device IP address
            branch_id: Only honoured for admins; other roles are already
                limited to their own branch
        """
        stmt = recordings_with_branch(
            Recording,
            recording_status_expr.label("status"),
            Device.id,
            Device.device_name,
            Branch.id,
            Branch.branch_name,
        )
        stmt = apply_branch_scope(stmt, scope, Branch.id)

        if search and search.strip():
            stmt = stmt.where(Recording.cnic.ilike(f"%{search.strip()}%"))
        if device and device.strip():
            stmt = stmt.where(Recording.ip_address == normalize_ip(device))
        if branch_id is not None and scope.is_admin:
            stmt = stmt.where(Branch.id == branch_id)
        if status is not None:
            stmt = stmt.where(recording_status_expr == RecordingStatus(status).value)

        total = (await db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()

        stmt = stmt.order_by(Recording.start_time.desc(), Recording.id.desc())
        stmt = stmt.offset((page - 1) * per_page).limit(per_page)
        rows = (await db.execute(stmt)).all()
        return [_recording_read(*row) for row in rows], total

    @staticmethod
    @critical_database_operation("get recording")
    async def get_recording(
        db: AsyncSession, scope: Optional[BranchScope], recording_id: int
    ) -> Optional[RecordingRead]:
        """One recording; scope=None skips branch filtering (write paths)."""
        stmt = recordings_with_branch(
            Recording,
            recording_status_expr.label("status"),
            Device.id,
            Device.device_name,
            Branch.id,
            Branch.branch_name,
        ).where(Recording.id == recording_id)
        if scope is not None:
            stmt = apply_branch_scope(stmt, scope, Branch.id)
        row = (await db.execute(stmt)).first()
        return _recording_read(*row) if row is not None else None

    @staticmethod
    @critical_database_operation("list recording devices")
    async def list_device_names(db: AsyncSession, scope: BranchScope) -> List[str]:
        """Distinct names of devices that have recordings visible to the caller."""
        stmt = recordings_with_branch(Device.device_name).where(Device.id.is_not(None)).distinct()
        stmt = apply_branch_scope(stmt, scope, Branch.id).order_by(Device.device_name)
        return [name for name in (await db.execute(stmt)).scalars().all() if name]

    @staticmethod
    @transactional_database_operation("start recording")
    async def start_recording(db: AsyncSession, data: RecordingStart) -> Recording:
        recording = Recording(
            cnic=data.cnic.strip(),
            ip_address=normalize_ip(data.ip_address),
            mac_address=data.mac_address,
            start_time=utc_now(),
        )
        db.add(recording)
        await db.flush()
        logger.info(f"Recording {recording.id} started from {recording.ip_address}")
        return recording

    @staticmethod
    @transactional_database_operation("finish recording")
    async def finish_recording(db: AsyncSession, recording_id: int, data: RecordingFinish) -> Recording:
        result = await db.execute(select(Recording).where(Recording.id == recording_id))
        recording = result.scalar_one_or_none()
        if recording is None:
            raise NotFoundError("Recording not found")

        end_time = data.end_time or utc_now()
        if end_time.tzinfo is not None:
            end_time = end_time.astimezone(timezone.utc).replace(tzinfo=None)
        if recording.start_time and end_time < recording.start_time:
            raise ValidationError("End time cannot be before start time")

        recording.end_time = end_time
        if data.file_name is not None:
            recording.file_name = data.file_name
        if data.duration_seconds is not None:
            recording.duration_seconds = data.duration_seconds
        db.add(recording)
        await db.flush()
        return recording

    @staticmethod
    @transactional_database_operation("upload recording")
    async def store_upload(
        db: AsyncSession,
        *,
        content: bytes,
        ext: str,
        ip_address: str,
        start_time: datetime,
        end_time: datetime,
        cnic: str,
        mac_address: Optional[str] = None,
    ) -> Recording:
        """
        Persist an uploaded recording file and its metadata row.

        Commits before returning so the file is removed again if the row
        cannot be written or committed.
        """
        if end_time < start_time:
            raise ValidationError("End time cannot be before start time")
        try:
            mac_address = normalize_mac(mac_address)
        except ValueError as e:
            raise ValidationError(str(e))

        file_name = await recording_storage.save_recording_file(content, ext)
        try:
            duration = None
            if ext == "wav":
                duration = await recording_storage.wav_duration_seconds(file_name)
            if duration is None:
                duration = int((end_time - start_time).total_seconds())

            recording = Recording(
                cnic=cnic.strip(),
                ip_address=normalize_ip(ip_address),
                mac_address=mac_address,
                start_time=start_time,
                end_time=end_time,
                file_name=file_name,
                duration_seconds=duration,
            )
            db.add(recording)
            await db.commit()
        except Exception:
            recording_storage.remove_file(file_name)
            raise

        recordings_uploaded.labels(extension=ext).inc()
        return recording
