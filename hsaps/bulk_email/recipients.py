"""Recipient sources for bulk email.

Every address is checked against EMAIL_PATTERN; invalid entries are dropped
without error. Duplicates are kept.
"""
import csv
import io
import re
from dataclasses import dataclass, asdict
from typing import List, Optional

from core.status import Status

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
_MANUAL_SEPARATORS = re.compile(r'[\s,;]+')

LIST_CONFIRMED_ATTENDEES = 'confirmed_attendees'
LIST_APPROVED_SPEAKERS = 'approved_speakers'
PREDEFINED_LISTS = (LIST_CONFIRMED_ATTENDEES, LIST_APPROVED_SPEAKERS)


class RecipientError(ValueError):
    pass


@dataclass
class Recipient:
    email: str
    name: Optional[str] = None

    def to_dict(self):
        return asdict(self)


def is_valid_email(value) -> bool:
    return bool(value) and bool(EMAIL_PATTERN.match(value))


def parse_csv(text) -> List[Recipient]:
    """CSV with an `email` column and an optional `name` column (header case-insensitive)."""
    rows = list(csv.reader(io.StringIO(text or '')))
    if not rows:
        raise RecipientError("Tệp CSV phải có cột 'email'.")
    header = [h.strip().lower() for h in rows[0]]
    if 'email' not in header:
        raise RecipientError("Tệp CSV phải có cột 'email'.")
    email_idx = header.index('email')
    name_idx = header.index('name') if 'name' in header else None

    recipients = []
    for row in rows[1:]:
        email = row[email_idx].strip() if len(row) > email_idx else ''
        if not is_valid_email(email):
            continue
        name = None
        if name_idx is not None and len(row) > name_idx:
            name = row[name_idx].strip()
        recipients.append(Recipient(email=email, name=name))
    return recipients


def parse_manual(text) -> List[Recipient]:
    """Addresses separated by commas, semicolons or whitespace."""
    return [Recipient(email=part) for part in _MANUAL_SEPARATORS.split(text or '')
            if is_valid_email(part)]


def from_payload(items) -> List[Recipient]:
    """Recipients sent back by a client as [{email, name}], re-validated."""
    recipients = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        email = (item.get('email') or '').strip()
        if is_valid_email(email):
            recipients.append(Recipient(email=email, name=item.get('name')))
    return recipients


def predefined_list(name, submission_repo, speaker_repo) -> List[Recipient]:
    """confirmed_attendees: submissions with Đã thanh toán; approved_speakers: speakers with Đã duyệt."""
    if name == LIST_CONFIRMED_ATTENDEES:
        rows = submission_repo.get_by_status(Status.PAYMENT_CONFIRMED)
    elif name == LIST_APPROVED_SPEAKERS:
        rows = speaker_repo.get_by_status(Status.APPROVED)
    else:
        raise RecipientError(f'Danh sách không hợp lệ: {name}')
    return [Recipient(email=r['email'], name=r.get('full_name'))
            for r in rows if is_valid_email(r.get('email'))]
