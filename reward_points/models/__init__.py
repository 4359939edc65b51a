from reward_points.models.directory.member import Member
from reward_points.models.criteria.criteria import Criteria
from reward_points.models.rewards.reward_entry import RewardEntry
from reward_points.models.approval.approval_entry import ApprovalEntry
from reward_points.models.leaderboard.leaderboard import Leaderboard
from reward_points.models.consent.consent_log import ConsentLog
from reward_points.models.admin.admin_account import AdminAccount
