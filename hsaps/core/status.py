"""Shared workflow status enumeration.

One canonical set of display labels reused across submissions, speakers,
sponsors and tasks, with an allow-list per entity. Tasks persist two of
their states under legacy keys; `to_storage` / `from_storage` translate at
the repository boundary.
"""
from enum import Enum


class Status(str, Enum):
    PENDING = 'Chờ duyệt'
    APPROVED = 'Đã duyệt'
    REJECTED = 'Từ chối'
    PAYMENT_PENDING = 'Chờ thanh toán'
    PAYMENT_CONFIRMED = 'Đã thanh toán'
    IN_PROGRESS = 'Đang thực hiện'
    COMPLETED = 'Hoàn thành'


class DocumentType(str, Enum):
    IMAGE = 'Hình ảnh'
    PDF = 'PDF'
    VIDEO = 'Video'
    PRESENTATION = 'Bài trình bày'
    OTHER = 'Khác'


ENTITY_STATUSES = {
    'submission': (
        Status.PENDING, Status.APPROVED, Status.REJECTED,
        Status.PAYMENT_PENDING, Status.PAYMENT_CONFIRMED,
    ),
    'speaker': (Status.PENDING, Status.APPROVED, Status.REJECTED),
    'sponsor': (
        Status.PENDING, Status.APPROVED, Status.REJECTED,
        Status.PAYMENT_PENDING, Status.PAYMENT_CONFIRMED,
    ),
    'task': (Status.PENDING, Status.IN_PROGRESS, Status.COMPLETED, Status.REJECTED),
}

# entity -> {Status: stored key}
_LEGACY_KEYS = {
    'task': {
        Status.IN_PROGRESS: 'IN_PROGRESS',
        Status.COMPLETED: 'COMPLETED',
    },
}


def allowed_statuses(entity):
    return ENTITY_STATUSES[entity]


def parse_status(entity, value):
    """Resolve a display label or legacy key to a Status valid for `entity`.

    Raises ValueError for unknown or inapplicable values.
    """
    if isinstance(value, Status):
        status = value
    else:
        status = None
        for candidate in Status:
            if value == candidate.value:
                status = candidate
                break
        if status is None:
            for candidate, key in _LEGACY_KEYS.get(entity, {}).items():
                if value == key:
                    status = candidate
                    break
    if status is None or status not in ENTITY_STATUSES[entity]:
        raise ValueError(f'Trạng thái không hợp lệ: {value}')
    return status


def to_storage(entity, status):
    """Value written to the database for a status."""
    status = parse_status(entity, status)
    return _LEGACY_KEYS.get(entity, {}).get(status, status.value)


def from_storage(entity, stored):
    """Display label for a stored value; missing values read as Pending."""
    if not stored:
        return Status.PENDING.value
    for status, key in _LEGACY_KEYS.get(entity, {}).items():
        if stored == key:
            return status.value
    return stored


def storage_values(entity, status):
    """All stored values that mean `status` (for filtering rows written under either key)."""
    status = parse_status(entity, status)
    values = [status.value]
    legacy = _LEGACY_KEYS.get(entity, {}).get(status)
    if legacy:
        values.append(legacy)
    return values
