from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.constants import ADMIN_ROLES, EDITABLE_COURSE_STATUSES, RoleEnum
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.models.course import Course
from app.schemas.user import UserContext


class PermissionHelper:
    @staticmethod
    def is_admin(context: UserContext) -> bool:
        return context.role in ADMIN_ROLES

    @staticmethod
    def is_instructor(context: UserContext) -> bool:
        return context.role == RoleEnum.INSTRUCTOR

    @staticmethod
    def is_course_owner(context: UserContext, course: Course) -> bool:
        return course.instructor_id == context.account.id

    @staticmethod
    def can_view_course(db: Session, context: UserContext, course: Course) -> bool:
        if PermissionHelper.is_admin(context) or PermissionHelper.is_course_owner(context, course):
            return True
        return crud_enrollment.is_enrolled(db, account_id=context.account.id, course_id=course.id)

    @staticmethod
    def require_admin(context: UserContext, error_message: str = "Only admins can perform this action."):
        if not PermissionHelper.is_admin(context):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error_message)

    @staticmethod
    def require_course_creator(context: UserContext):
        if not (PermissionHelper.is_admin(context) or PermissionHelper.is_instructor(context)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only instructors and admins can create courses."
            )

    @staticmethod
    def require_course_owner_or_admin(context: UserContext, course: Course):
        if not (PermissionHelper.is_admin(context) or PermissionHelper.is_course_owner(context, course)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to manage this course."
            )

    @staticmethod
    def require_course_mutation_permission(context: UserContext, course: Course):
        """Owners may change a course only while it is DRAFT or REJECTED. Admins always may."""
        if PermissionHelper.is_admin(context):
            return
        PermissionHelper.require_course_owner_or_admin(context, course)
        if course.status not in EDITABLE_COURSE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Course can only be modified while in DRAFT or REJECTED status. Current status: {course.status.value}."
            )

    @staticmethod
    def require_course_view_permission(db: Session, context: UserContext, course: Course):
        if not PermissionHelper.can_view_course(db, context, course):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You must be enrolled in this course to access it."
            )
