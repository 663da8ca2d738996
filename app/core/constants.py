from enum import Enum


PENDING_UPLOAD_URL = "pending_upload"

class RoleEnum(str, Enum):
    SUPERADMIN = "SUPERADMIN"
    ADMIN = "ADMIN"
    INSTRUCTOR = "INSTRUCTOR"
    STUDENT = "STUDENT"

ADMIN_ROLES = (RoleEnum.ADMIN, RoleEnum.SUPERADMIN)

class CourseStatusEnum(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    REJECTED = "REJECTED"
    ARCHIVED = "ARCHIVED"

EDITABLE_COURSE_STATUSES = (CourseStatusEnum.DRAFT, CourseStatusEnum.REJECTED)

COURSE_TRANSITIONS = {
    CourseStatusEnum.DRAFT: (CourseStatusEnum.PENDING,),
    CourseStatusEnum.REJECTED: (CourseStatusEnum.PENDING,),
    # ARCHIVED from PENDING only when an approved update draft is merged away.
    CourseStatusEnum.PENDING: (CourseStatusEnum.PUBLISHED, CourseStatusEnum.REJECTED, CourseStatusEnum.ARCHIVED),
    CourseStatusEnum.PUBLISHED: (CourseStatusEnum.ARCHIVED,),
    CourseStatusEnum.ARCHIVED: (),
}

class ApprovalRequestTypeEnum(str, Enum):
    INITIAL_SUBMISSION = "INITIAL_SUBMISSION"
    RE_SUBMISSION = "RE_SUBMISSION"

class ApprovalStatusEnum(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    NEEDS_REVISION = "NEEDS_REVISION"

class LessonTypeEnum(str, Enum):
    VIDEO = "VIDEO"
    TEXT = "TEXT"
    QUIZ = "QUIZ"

class VideoSourceTypeEnum(str, Enum):
    CLOUDINARY = "CLOUDINARY"
    YOUTUBE = "YOUTUBE"
    VIMEO = "VIMEO"

class AssetResourceTypeEnum(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    RAW = "raw"

class NotificationTypeEnum(str, Enum):
    COURSE_SUBMITTED = "COURSE_SUBMITTED"
    COURSE_APPROVED = "COURSE_APPROVED"
    COURSE_REJECTED = "COURSE_REJECTED"
    COURSE_NEEDS_REVISION = "COURSE_NEEDS_REVISION"
