from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from reward_points.models.shared.enums import ApprovalDecision, ApprovalState, ApprovalStatus
from reward_points.schemas.rewards.reward_entry_schema import RewardEntryDetail
from reward_points.schemas.leaderboard.leaderboard_schema import LeaderboardResponse

class ApprovalActionRequest(BaseModel):
    decision: ApprovalDecision
    notes: Optional[str] = None

class AdminApprovalUpdate(BaseModel):
    criteria_id: Optional[int] = None
    manager_approval_status: Optional[ApprovalStatus] = None
    director_approval_status: Optional[ApprovalStatus] = None
    manager_notes: Optional[str] = None
    director_notes: Optional[str] = None
    short_description: Optional[str] = Field(None, min_length=1)
    date_accomplished: Optional[date] = None
    group_name: Optional[str] = None
    project_name: Optional[str] = None
    notes: Optional[str] = None

class ApprovalEntryResponse(BaseModel):
    id: int
    reward_entry_id: int
    manager_id: Optional[str] = None
    director_id: Optional[str] = None
    manager_approval_status: ApprovalStatus
    director_approval_status: ApprovalStatus
    manager_notes: Optional[str] = None
    director_notes: Optional[str] = None
    state: Optional[ApprovalState] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ApprovalEntryDetail(ApprovalEntryResponse):
    manager_name: Optional[str] = None
    director_name: Optional[str] = None
    owner_name: Optional[str] = None
    reward_entry: Optional[RewardEntryDetail] = None

class WorkflowResult(BaseModel):
    """Outcome of a workflow mutation: the approval record and the owner's ledger row"""
    approval: ApprovalEntryResponse
    leaderboard: LeaderboardResponse
