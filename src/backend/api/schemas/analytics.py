"""
Analytics schemas: the recordings dashboard, conversation analytics and
voice stream counts.
"""
from typing import List, Optional

from core.schema_base import HTTPSchemaModel


class DailyCount(HTTPSchemaModel):
    day: str  # YYYY-MM-DD
    count: int


class StatusCount(HTTPSchemaModel):
    status: str
    count: int


class BranchCount(HTTPSchemaModel):
    branch_id: Optional[int] = None
    branch_name: str
    count: int


class DashboardTotals(HTTPSchemaModel):
    total_recordings: int
    completed_recordings: int
    avg_duration: int  # seconds, over recordings with an end time
    today_recordings: int
    total_devices: int
    total_branches: int
    online_devices: int


class DashboardAnalytics(HTTPSchemaModel):
    """
    Each section is computed independently; a section that could not be
    loaded is empty (or null) and named in `unavailable`.
    """
    daily_recordings: List[DailyCount] = []
    recordings_by_status: List[StatusCount] = []
    recordings_by_branch: List[BranchCount] = []
    totals: Optional[DashboardTotals] = None
    unavailable: List[str] = []


# ============================================================================
# Conversation analytics
# ============================================================================

class BranchConversations(HTTPSchemaModel):
    branch_id: int
    branch_name: str
    branch_city: Optional[str] = None
    count: int


class BranchMonthConversations(BranchConversations):
    month: str  # YYYY-MM


class CityConversions(HTTPSchemaModel):
    city: str
    conversion_count: int
    total_conversations: int


class DailyConversions(HTTPSchemaModel):
    date: str  # YYYY-MM-DD
    conversion_count: int
    total_conversations: int


class MonthlyUniqueCnics(HTTPSchemaModel):
    month: str
    unique_cnic_count: int


class ConversationTotals(HTTPSchemaModel):
    total_conversations: int
    unique_customers: int
    active_branches: int
    today_conversations: int


class ConversionMetrics(HTTPSchemaModel):
    total_conversions: int
    conversion_rate: float  # percent, one decimal
    avg_conversation_duration: int  # seconds
    successful_outcomes: int


class BranchConversionRate(HTTPSchemaModel):
    branch_name: str
    total_conversations: int
    successful_conversions: int
    conversion_rate: float


class DailyConversionTrend(HTTPSchemaModel):
    date: str
    conversations: int
    conversions: int
    conversion_rate: float


class BranchMonthlyTrend(HTTPSchemaModel):
    branch_code: str
    year: int
    month: int
    total_records: int


class ConversationAnalytics(HTTPSchemaModel):
    """
    A conversation is a recording; a conversion is a completed recording.
    Sections fail independently, like the dashboard.
    """
    conversations_by_branch: List[BranchConversations] = []
    conversations_by_branch_month: List[BranchMonthConversations] = []
    conversions_by_city: List[CityConversions] = []
    daily_conversations: List[DailyConversions] = []
    unique_cnics_by_month: List[MonthlyUniqueCnics] = []
    total_stats: Optional[ConversationTotals] = None
    conversion_metrics: Optional[ConversionMetrics] = None
    conversions_by_branch: List[BranchConversionRate] = []
    conversion_trends: List[DailyConversionTrend] = []
    unavailable: List[str] = []


# ============================================================================
# Voice streams
# ============================================================================

class MonthlyStreams(HTTPSchemaModel):
    month: str  # YYYY-MM
    formatted_month: str  # e.g. "Mar 2026"
    voice_streams: int


class VoiceStreamAnalytics(HTTPSchemaModel):
    total_streams: int
    current_month_streams: int
    previous_month_streams: int
    monthly_data: List[MonthlyStreams]
