"""
Digest Renderer

Turns a DigestPayload into the HTML body of the digest email. Pure functions:
no database or network access.
"""

from datetime import datetime
from html import escape

from request_manager.modules.digest.schemas import DigestComment, DigestPayload, DigestRequest

STATUS_LABELS: dict[str, str] = {
    "PENDING": "Pending",
    "IN_REVIEW": "In Review",
    "APPROVED": "Approved",
    "DENIED": "Denied",
    "CLOSED": "Closed",
}


def status_label(status: str) -> str:
    """Human readable status. Unknown codes are returned unchanged."""
    return STATUS_LABELS.get(status, status)


def _format_date(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def digest_subject(now: datetime) -> str:
    """Subject line for a digest sent at ``now``."""
    return f"Your Daily Digest - {now:%B} {now.day}, {now.year}"


def _request_table(requests: list[DigestRequest], last_column: str) -> str:
    rows = []
    for request in requests:
        if last_column == "Date":
            last_cell = _format_date(request.created_at)
        else:
            last_cell = status_label(request.status)
        rows.append(
            f"""
                <tr>
                    <td>{escape(request.student_name)}</td>
                    <td>{escape(request.subject)}</td>
                    <td>{escape(request.course_name)}</td>
                    <td>{escape(last_cell)}</td>
                </tr>"""
        )

    return f"""
            <table class="digest-table">
                <thead>
                    <tr>
                        <th>Student</th>
                        <th>Subject</th>
                        <th>Course</th>
                        <th>{last_column}</th>
                    </tr>
                </thead>
                <tbody>{"".join(rows)}
                </tbody>
            </table>"""


def _new_requests_section(requests: list[DigestRequest]) -> str:
    return f"""
        <div class="section">
            <h2>New Requests ({len(requests)})</h2>
            <p class="section-note">Submitted since your last digest.</p>
            {_request_table(requests, "Date")}
        </div>"""


def _action_items_section(requests: list[DigestRequest]) -> str:
    return f"""
        <div class="section">
            <h2>Needs Your Attention ({len(requests)})</h2>
            <p class="section-note">Assigned to you and awaiting action.</p>
            {_request_table(requests, "Status")}
        </div>"""


def _new_comments_section(comments: list[DigestComment]) -> str:
    items = "".join(
        f"""
                <li><strong>{escape(c.author_name)}</strong> noted on <em>{escape(c.request_subject)}</em>: {escape(c.content_preview)}</li>"""
        for c in comments
    )
    return f"""
        <div class="section">
            <h2>New Staff Notes ({len(comments)})</h2>
            <p class="section-note">Internal notes from staff on requests in your courses.</p>
            <ul class="notes">{items}
            </ul>
        </div>"""


def render_digest(payload: DigestPayload, base_url: str) -> str:
    """
    Render the digest email.

    Each of the three sections is left out entirely when its list is empty.
    The dashboard and preferences links are always present.

    Args:
        payload: Digest content
        base_url: Public URL of the web client

    Returns:
        HTML document
    """
    dashboard_url = f"{base_url.rstrip('/')}/dashboard"
    settings_url = f"{dashboard_url}/settings"

    sections = ""
    if payload.new_requests:
        sections += _new_requests_section(payload.new_requests)
    if payload.action_items:
        sections += _action_items_section(payload.action_items)
    if payload.new_comments:
        sections += _new_comments_section(payload.new_comments)

    plural = "" if payload.total_pending == 1 else "s"

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>
            body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #374151; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
            .header {{ border-bottom: 2px solid #111827; padding-bottom: 12px; margin-bottom: 24px; }}
            .header h1 {{ font-size: 20px; color: #111827; margin: 0; }}
            .section {{ margin-bottom: 24px; }}
            .section h2 {{ font-size: 16px; color: #111827; margin-bottom: 4px; }}
            .section-note {{ font-size: 13px; color: #6b7280; margin: 0 0 8px; }}
            .digest-table {{ width: 100%; border-collapse: collapse; font-size: 14px; }}
            .digest-table th {{ padding: 8px 12px; text-align: left; border-bottom: 2px solid #e5e7eb; background-color: #f9fafb; }}
            .digest-table td {{ padding: 8px 12px; border-bottom: 1px solid #e5e7eb; }}
            .notes {{ list-style: none; padding: 0; margin: 0; font-size: 14px; }}
            .notes li {{ padding: 6px 0; border-bottom: 1px solid #f3f4f6; }}
            .button {{ display: inline-block; background-color: #111827; color: white; padding: 10px 20px; text-decoration: none; border-radius: 6px; font-size: 14px; }}
            .footer {{ margin-top: 24px; padding-top: 16px; border-top: 1px solid #e5e7eb; color: #9ca3af; font-size: 12px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>Daily Digest</h1>
                <p>Student Request Manager</p>
            </div>

            <p>Hi {escape(payload.user_name)},</p>

            <p>Here's your daily summary. You have <strong>{payload.total_pending}</strong> pending request{plural} total.</p>
            {sections}

            <a href="{dashboard_url}" class="button">Open Dashboard</a>

            <div class="footer">
                <p>You're receiving this because you enabled digest emails.
                <a href="{settings_url}">Manage preferences</a></p>
            </div>
        </div>
    </body>
    </html>
    """
