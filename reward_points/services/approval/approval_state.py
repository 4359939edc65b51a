"""Approval state derivation.

An approval entry stores one status per track. The pair is only meaningful
in combination with the criteria's director-approval flag, so every read and
every write of the two columns goes through :func:`resolve_state`, which maps
the legal combinations onto a single :class:`ApprovalState` and rejects the
rest.

Legal combinations (manager, director):

    director approval required      director approval not required
    (pending,  pending)  AWAITING_MANAGER     (pending,  approved) AWAITING_MANAGER
    (approved, pending)  AWAITING_DIRECTOR    (approved, approved) APPROVED
    (approved, approved) APPROVED             (rejected, approved) REJECTED
    (approved, rejected) REJECTED
    (rejected, pending)  REJECTED
"""
from typing import Dict, Tuple

from reward_points.core.exceptions import InvalidStateError
from reward_points.models.shared.enums import ApprovalState, ApprovalStatus, PointBucket, Role

P = ApprovalStatus.PENDING
A = ApprovalStatus.APPROVED
R = ApprovalStatus.REJECTED

_WITH_DIRECTOR: Dict[Tuple[ApprovalStatus, ApprovalStatus], ApprovalState] = {
    (P, P): ApprovalState.AWAITING_MANAGER,
    (A, P): ApprovalState.AWAITING_DIRECTOR,
    (A, A): ApprovalState.APPROVED,
    (A, R): ApprovalState.REJECTED,
    (R, P): ApprovalState.REJECTED,
}

_WITHOUT_DIRECTOR: Dict[Tuple[ApprovalStatus, ApprovalStatus], ApprovalState] = {
    (P, A): ApprovalState.AWAITING_MANAGER,
    (A, A): ApprovalState.APPROVED,
    (R, A): ApprovalState.REJECTED,
}

_BUCKET_FOR_STATE = {
    ApprovalState.AWAITING_MANAGER: PointBucket.FOR_APPROVAL,
    ApprovalState.AWAITING_DIRECTOR: PointBucket.FOR_APPROVAL,
    ApprovalState.APPROVED: PointBucket.APPROVED,
    ApprovalState.REJECTED: PointBucket.REJECTED,
}


def resolve_state(
    manager_status: ApprovalStatus,
    director_status: ApprovalStatus,
    director_approval_required: bool,
) -> ApprovalState:
    table = _WITH_DIRECTOR if director_approval_required else _WITHOUT_DIRECTOR
    state = table.get((ApprovalStatus(manager_status), ApprovalStatus(director_status)))
    if state is None:
        raise InvalidStateError(
            f"Illegal approval status combination: manager={ApprovalStatus(manager_status).value}, "
            f"director={ApprovalStatus(director_status).value}, "
            f"director approval {'required' if director_approval_required else 'not required'}"
        )
    return state


def bucket_for_state(state: ApprovalState) -> PointBucket:
    """Ledger bucket that holds an entry's points while it is in ``state``"""
    return _BUCKET_FOR_STATE[state]


def initial_statuses(
    role: Role, director_approval_required: bool
) -> Tuple[ApprovalStatus, ApprovalStatus]:
    """Starting (manager, director) statuses for a new submission"""
    manager_status = P if role.requires_review_step else A
    director_status = P if director_approval_required else A
    return manager_status, director_status


def resubmission_statuses(
    manager_reviewed: bool,
    director_approval_required: bool,
    manager_status: ApprovalStatus,
) -> Tuple[ApprovalStatus, ApprovalStatus]:
    """Statuses after a rejected entry is resubmitted by its owner.

    The reset follows how the entry was routed when it was submitted, not
    the owner's current role: entries with an assigned manager go back
    through the manager, the others only repeat the director step. The
    result is always an awaiting state, otherwise the resubmission is
    refused.
    """
    if manager_reviewed:
        statuses = (P, P if director_approval_required else A)
    elif not director_approval_required:
        raise InvalidStateError("This entry has no reviewer to resubmit to; contact an administrator")
    else:
        statuses = (ApprovalStatus(manager_status), P)

    state = resolve_state(*statuses, director_approval_required)
    awaiting = {ApprovalState.AWAITING_DIRECTOR}
    if manager_reviewed:
        awaiting.add(ApprovalState.AWAITING_MANAGER)
    if state not in awaiting:
        raise InvalidStateError(
            f"Resubmitting would leave this entry {state.value}; contact an administrator"
        )
    return statuses
