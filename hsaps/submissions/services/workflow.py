"""Submission status workflow.

Guided transitions:
    Chờ duyệt      -> Đã duyệt | Từ chối
    Đã duyệt       -> Chờ thanh toán
    Chờ thanh toán -> Đã thanh toán | Từ chối

Đã thanh toán and Từ chối are terminal for the guided endpoint. Raw edits
(submissions:edit) may set any status valid for a submission.

Side effects are planned only when the status changes into a state; a save
that keeps the status plans nothing. A newly created row counts as entering
its initial status.
"""

from core.status import Status

GUIDED_TRANSITIONS = {
    Status.PENDING: (Status.APPROVED, Status.REJECTED),
    Status.APPROVED: (Status.PAYMENT_PENDING,),
    Status.PAYMENT_PENDING: (Status.PAYMENT_CONFIRMED, Status.REJECTED),
}

TERMINAL_STATUSES = (Status.PAYMENT_CONFIRMED, Status.REJECTED)

BADGE_STATUSES = (Status.APPROVED, Status.PAYMENT_CONFIRMED)

EFFECT_NOTIFY_ADMINS = 'notify_admins'
EFFECT_CONFIRMATION_EMAIL = 'confirmation_email'
EFFECT_FINANCE_TRANSACTION = 'finance_transaction'
EFFECT_BADGE = 'badge'


def _status_value(status):
    if status is None:
        return None
    return status.value if isinstance(status, Status) else status


def next_statuses(current):
    """Statuses the guided endpoint may move to from `current`."""
    for status, targets in GUIDED_TRANSITIONS.items():
        if status.value == _status_value(current):
            return targets
    return ()


def can_transition(current, target) -> bool:
    target = _status_value(target)
    return any(t.value == target for t in next_statuses(current))


def _amount(value):
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def plan_effects(old, new):
    """Outbox effects due for the change from row `old` (None on create) to row `new`."""
    old_status = _status_value(old.get('status')) if old else None
    new_status = _status_value(new.get('status'))
    if new_status == old_status:
        return []

    effects = []
    if new_status == Status.PAYMENT_CONFIRMED.value:
        effects.append(EFFECT_NOTIFY_ADMINS)
        effects.append(EFFECT_CONFIRMATION_EMAIL)
        if _amount(new.get('payment_amount')) > 0:
            effects.append(EFFECT_FINANCE_TRANSACTION)
    if new_status in (s.value for s in BADGE_STATUSES) and not new.get('badge_url'):
        effects.append(EFFECT_BADGE)
    return effects
