"""
Seed Demo Staff

Creates an admin, a professor with one course and a teaching assistant on
that course, all with digests enabled, plus a few student requests. Useful
for trying the digest locally.

Usage:
    python scripts/seed_demo_staff.py
"""

import asyncio
import sys
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import select

from request_manager.core.database import async_session_maker, close_db
from request_manager.modules.courses.models import Course, CourseMember
from request_manager.modules.student_requests.models import Comment, Request, RequestStatus
from request_manager.modules.users.models import User, UserRole

DEMO_COURSE_CODE = "CS101"


async def seed_demo_staff() -> None:
    """Create demo staff, a course and requests if they don't exist."""
    async with async_session_maker() as db:
        result = await db.execute(select(Course).where(Course.code == DEMO_COURSE_CODE))
        if result.scalar_one_or_none():
            print(f"Demo course {DEMO_COURSE_CODE} already exists, nothing to do")
            return

        admin = User(
            email="admin@requests.dev",
            name="Ada Admin",
            role=UserRole.ADMIN,
            digest_enabled=True,
        )
        professor = User(
            email="prof@requests.dev",
            name="Paula Professor",
            role=UserRole.PROFESSOR,
            digest_enabled=True,
        )
        assistant = User(
            email="ta@requests.dev",
            name="Tom Assistant",
            role=UserRole.TEACHING_ASSISTANT,
            digest_enabled=True,
            digest_timezone="America/New_York",
        )
        db.add_all([admin, professor, assistant])
        await db.flush()

        course = Course(name="Intro to Computer Science", code=DEMO_COURSE_CODE, owner_id=professor.id)
        db.add(course)
        await db.flush()

        db.add(CourseMember(course_id=course.id, user_id=assistant.id))

        extension = Request(
            subject="Extension for Assignment 2",
            description="I was ill last week and need two more days.",
            student_name="Sam Student",
            student_email="sam@students.dev",
            course_id=course.id,
            assigned_to_id=assistant.id,
            status=RequestStatus.IN_REVIEW,
        )
        regrade = Request(
            subject="Regrade Quiz 1",
            description="Question 3 was marked wrong but matches the solution.",
            student_name="Riley Student",
            student_email="riley@students.dev",
            course_id=course.id,
        )
        db.add_all([extension, regrade])
        await db.flush()

        db.add(
            Comment(
                content="Medical note received, approving once the professor signs off.",
                author_id=assistant.id,
                request_id=extension.id,
            )
        )
        await db.commit()

        print("Demo data created successfully!")
        for user in (admin, professor, assistant):
            print(f"  {user.role.value}: {user.email} (ID: {user.id})")
        print(f"  Course: {course.code} (ID: {course.id})")

    await close_db()


if __name__ == "__main__":
    asyncio.run(seed_demo_staff())
