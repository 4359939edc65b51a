from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime
from reward_points.models.shared.enums import Role

class LeaderboardResponse(BaseModel):
    id: int
    employee_id: str
    fiscal_year: str
    alias_name: str
    total_points: int
    approved_points: int
    for_approval_points: int
    rejected_points: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class LeaderboardRanking(LeaderboardResponse):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    role_id: Optional[Role] = None

class RolePointTotals(BaseModel):
    total: int = 0
    approved: int = 0
    pending: int = 0
    rejected: int = 0

class LeaderboardStats(BaseModel):
    counts_by_role: Dict[str, int] = {}
    top_managers: List[LeaderboardRanking] = []
    top_members: List[LeaderboardRanking] = []
    points_by_role: Dict[str, RolePointTotals] = {}
