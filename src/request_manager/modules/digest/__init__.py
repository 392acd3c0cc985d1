"""
Digest Module

Daily email digest for staff: new requests, assigned open requests and new
staff notes in the courses they can see.

API Endpoints:
- GET /settings/digest - Get digest preferences
- PATCH /settings/digest - Update digest preferences
- POST /settings/digest/test - Send a test digest now

Background Jobs (via APScheduler):
- send_daily_digests: Runs at the top of every hour, sends each staff member
  their digest in their configured local hour
"""

from .jobs import register_digest_jobs
from .router import router

__all__ = ["router", "register_digest_jobs"]
