from fastapi import APIRouter
from reward_points.api.v1.endpoints.admin import admins
from reward_points.api.v1.endpoints.auth import login
from reward_points.api.v1.endpoints.approval import approvals
from reward_points.api.v1.endpoints.consent import consent
from reward_points.api.v1.endpoints.criteria import criteria
from reward_points.api.v1.endpoints.directory import members
from reward_points.api.v1.endpoints.leaderboard import leaderboards
from reward_points.api.v1.endpoints.rewards import rewards

api_router = APIRouter()

# Authentication routes
api_router.include_router(login.router, prefix="/auth", tags=["Authentication"])

# Admin account routes
api_router.include_router(admins.router, prefix="/admins", tags=["Admin Accounts"])

# Directory routes
api_router.include_router(members.router, prefix="/members", tags=["Members"])

# Reward routes
api_router.include_router(criteria.router, prefix="/criteria", tags=["Criteria"])
api_router.include_router(rewards.router, prefix="/rewards", tags=["Rewards"])
api_router.include_router(approvals.router, prefix="/approvals", tags=["Approvals"])
api_router.include_router(leaderboards.router, prefix="/leaderboards", tags=["Leaderboards"])

# Consent routes
api_router.include_router(consent.router, prefix="/consent", tags=["Consent"])
