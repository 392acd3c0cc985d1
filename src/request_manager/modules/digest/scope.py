"""
Course scope resolution.

A staff member's course scope is the set of course ids whose activity they
are allowed to see. Each role has one resolver; adding a role means adding
one entry to COURSE_SCOPE_RESOLVERS.
"""

from collections.abc import Awaitable, Callable

from request_manager.modules.digest.store import DigestStore, StaffMember
from request_manager.modules.users.models import UserRole

ScopeResolver = Callable[[DigestStore, StaffMember], Awaitable[list[str]]]


async def _all_courses(store: DigestStore, staff: StaffMember) -> list[str]:
    return await store.get_all_course_ids()


async def _owned_courses(store: DigestStore, staff: StaffMember) -> list[str]:
    return await store.get_owned_course_ids(staff.id)


async def _member_courses(store: DigestStore, staff: StaffMember) -> list[str]:
    return await store.get_member_course_ids(staff.id)


COURSE_SCOPE_RESOLVERS: dict[UserRole, ScopeResolver] = {
    UserRole.ADMIN: _all_courses,
    UserRole.PROFESSOR: _owned_courses,
    UserRole.TEACHING_ASSISTANT: _member_courses,
}


async def resolve_course_scope(store: DigestStore, staff: StaffMember) -> list[str]:
    """
    Return the course ids visible to ``staff``.

    Raises:
        ValueError: If the staff member's role has no resolver
    """
    try:
        resolver = COURSE_SCOPE_RESOLVERS[staff.role]
    except KeyError:
        raise ValueError(f"No course scope defined for role {staff.role!r}") from None
    return await resolver(store, staff)
