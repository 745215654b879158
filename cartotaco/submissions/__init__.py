"""
Location submissions.

Responsibilities:
- Validate user-proposed establishments field by field.
- Store them as pending rows for admin review.
- Let users list, count, edit and withdraw their own submissions.
"""
from .models import DayHours, LocationSubmission, SubmissionStats, SubmissionUpdate
from .service import SUBMISSIONS_TABLE, SubmissionService

__all__ = [
    "DayHours",
    "LocationSubmission",
    "SubmissionService",
    "SubmissionStats",
    "SubmissionUpdate",
    "SUBMISSIONS_TABLE",
]
