"""
Requests module - Student requests and staff comments.
"""

from request_manager.modules.student_requests.models import (
    OPEN_STATUSES,
    Comment,
    Request,
    RequestStatus,
)

__all__ = ["Comment", "OPEN_STATUSES", "Request", "RequestStatus"]
