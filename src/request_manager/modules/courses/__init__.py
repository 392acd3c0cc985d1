"""
Courses module - Courses and teaching assistant membership.
"""

from request_manager.modules.courses.models import Course, CourseMember

__all__ = ["Course", "CourseMember"]
