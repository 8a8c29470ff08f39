"""Dashboard aggregation over the domain repositories."""
import logging

from core.status import Status
from event_tasks.repositories import TaskRepository
from finance.repositories import TransactionRepository
from sponsors.repositories import SponsorRepository
from submissions.repositories import SubmissionRepository

logger = logging.getLogger('hsaps.dashboard')

RECENT_LIMIT = 5


class DashboardService:

    def __init__(self, submission_repo=None, sponsor_repo=None, task_repo=None, transaction_repo=None):
        self.submission_repo = submission_repo or SubmissionRepository()
        self.sponsor_repo = sponsor_repo or SponsorRepository()
        self.task_repo = task_repo or TaskRepository()
        self.transaction_repo = transaction_repo or TransactionRepository()

    def overview(self):
        status_counts = self.submission_repo.count_by_status()
        return {
            'stats': {
                'submissions': sum(status_counts.values()),
                'sponsors': self.sponsor_repo.count_by_status(Status.PAYMENT_CONFIRMED.value),
                'tasks': self.task_repo.count_open(),
                'revenue': self.transaction_repo.total_income(),
            },
            'submission_status_counts': status_counts,
            'recent_submissions': self.submission_repo.get_latest(RECENT_LIMIT),
            'upcoming_tasks': self.task_repo.get_upcoming_open(RECENT_LIMIT),
        }
