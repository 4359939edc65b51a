import logging
from typing import Any

logger = logging.getLogger("reward_points.audit")

def log_member_action(member_id: str, action: str, entity: str, entity_id: Any = None):
    """Log member actions for audit trail"""
    logger.info(f"Member {member_id} performed {action} on {entity} {entity_id or ''}")
