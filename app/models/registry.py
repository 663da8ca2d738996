# Import every model so string references in relationships resolve and Base.metadata is complete.
from app.core.database import Base
from app.models.account import Account
from app.models.course import Course
from app.models.course_approval_request import CourseApprovalRequest
from app.models.course_enrollment import CourseEnrollment
from app.models.lesson import Lesson, LessonAttachment, LessonSubtitle
from app.models.notification import Notification
from app.models.quiz import QuizOption, QuizQuestion
from app.models.quiz_attempt import QuizAttempt, QuizAttemptAnswer
from app.models.section import Section

metadata = Base.metadata
