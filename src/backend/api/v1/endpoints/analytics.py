"""
Analytics endpoints.

All figures are limited to the caller's branch; admins see everything.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.analytics import (
    BranchMonthlyTrend,
    ConversationAnalytics,
    DashboardAnalytics,
    VoiceStreamAnalytics,
)
from api.services.analytics_service import AnalyticsService
from api.services.scoping import BranchScope
from core.database import get_session
from core.dependencies import get_branch_scope

router = APIRouter()


@router.get("/dashboard", response_model=DashboardAnalytics)
async def dashboard(
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """
    Dashboard figures for the caller's branch (or everything, for admins).

    Sections that fail to load are returned empty and listed in `unavailable`.
    """
    return await AnalyticsService.dashboard(db, scope)


@router.get("/conversations", response_model=ConversationAnalytics)
async def conversations(
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """
    Conversation and conversion analytics.

    Sections that fail to load are returned empty and listed in `unavailable`.
    """
    return await AnalyticsService.conversations(db, scope)


@router.get("/voice-streams", response_model=VoiceStreamAnalytics)
async def voice_streams(
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """Total streams, this month against last month, and the last 12 months."""
    return await AnalyticsService.voice_streams(db, scope)


@router.get("/branch-monthly-trend", response_model=List[BranchMonthlyTrend])
async def branch_monthly_trend(
    db: AsyncSession = Depends(get_session),
    scope: BranchScope = Depends(get_branch_scope),
):
    """Recordings per branch code per calendar month."""
    return await AnalyticsService.branch_monthly_trend(db, scope)
