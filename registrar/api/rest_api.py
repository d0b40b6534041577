"""
REST API for the Registrar engine using FastAPI.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from fastapi import FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from ..core.entities import Course, Enrollment, User
from ..core.enums import ReportFormat
from ..core.exceptions import (
    DuplicateEntityError, EnrollmentError, NotFoundError, RegistrarException, ValidationError
)


# Pydantic models for API
class UserCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=200)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    user_id: str
    user_type: str
    name: str
    email: str
    courses: List[str] = []
    created_at: datetime
    updated_at: datetime
    version: int


class LoginRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    password: str


class CourseCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    title: str = Field(..., min_length=1, max_length=200)
    instructor_id: Optional[str] = None
    total_sessions: int = Field(0, ge=0)


class CourseResponse(BaseModel):
    code: str
    title: str
    instructor_id: Optional[str] = None
    total_sessions: int
    created_at: datetime
    updated_at: datetime
    version: int


class InstructorAssignment(BaseModel):
    instructor_id: str = Field(..., min_length=1)


class EnrollmentRequest(BaseModel):
    student_id: str = Field(..., min_length=1)
    course_code: str = Field(..., min_length=1)


class GradesUpdate(BaseModel):
    assignment: float = Field(..., ge=0, le=100)
    quiz: float = Field(..., ge=0, le=100)
    final: float = Field(..., ge=0, le=100)


class AttendanceRecord(BaseModel):
    present: bool


class EnrollmentResponse(BaseModel):
    student_id: str
    course_code: str
    assignment_score: float
    quiz_score: float
    final_score: float
    overall: float
    attendance_count: int
    total_sessions: int
    attendance_percentage: float


class GpaResponse(BaseModel):
    student_id: str
    gpa: float
    enrollments: int


class PersistResponse(BaseModel):
    success: bool
    failed: List[str] = []


class StatisticsResponse(BaseModel):
    success: bool
    message: str
    statistics: Dict[str, Any]


def _http_error(e: RegistrarException) -> HTTPException:
    """Map an engine error onto an HTTP status."""
    if isinstance(e, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(e, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, (DuplicateEntityError, EnrollmentError)):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=e.message)


class RegistrarRestAPI:
    """Thin HTTP surface over a ``RecordsPlatform``."""

    def __init__(self, platform):
        self._platform = platform
        self._identity_store = platform.identity_store
        self._course_registry = platform.course_registry
        self._ledger = platform.ledger
        self._reports = platform.reports

        # Create FastAPI app
        self.app = FastAPI(
            title="Registrar API",
            description="Students, instructors, courses, grades and attendance",
            version="1.0.0",
            docs_url="/docs",
            redoc_url="/redoc"
        )

        # Add CORS middleware
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Setup routes
        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/", response_model=Dict[str, str])
        async def root():
            """Root endpoint."""
            return {
                "message": "Registrar API",
                "version": "1.0.0",
                "docs": "/docs"
            }

        @self.app.get("/health", response_model=Dict[str, str])
        async def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        # Identity endpoints
        @self.app.post("/students", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
        async def register_student(data: UserCreate):
            """Register a new student."""
            try:
                student = self._identity_store.register_student(data.user_id, data.name, data.email, data.password)
                return self._user_to_response(student)
            except RegistrarException as e:
                raise _http_error(e)

        @self.app.post("/instructors", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
        async def register_instructor(data: UserCreate):
            """Register a new instructor."""
            try:
                instructor = self._identity_store.register_instructor(data.user_id, data.name, data.email, data.password)
                return self._user_to_response(instructor)
            except RegistrarException as e:
                raise _http_error(e)

        @self.app.post("/auth/login", response_model=UserResponse)
        async def login(data: LoginRequest):
            """Check a user's credentials."""
            user = self._identity_store.authenticate(data.user_id, data.password)
            if user is None:
                raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login failed")
            return self._user_to_response(user)

        @self.app.get("/users", response_model=List[UserResponse])
        async def search_users(q: str = ""):
            """Search students and instructors by id or name."""
            return [self._user_to_response(u) for u in self._identity_store.find(q)]

        @self.app.get("/students/{student_id}", response_model=UserResponse)
        async def get_student(student_id: str):
            """Get a student by id."""
            student = self._identity_store.get_student(student_id)
            if student is None:
                raise HTTPException(status_code=404, detail="Student not found")
            return self._user_to_response(student)

        # Course endpoints
        @self.app.post("/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
        async def create_course(data: CourseCreate):
            """Create a new course."""
            try:
                course = self._course_registry.create_course(
                    data.code, data.title, data.instructor_id, data.total_sessions
                )
                return self._course_to_response(course)
            except RegistrarException as e:
                raise _http_error(e)

        @self.app.get("/courses", response_model=List[CourseResponse])
        async def list_courses(q: str = ""):
            """List courses, optionally filtered by code or title."""
            return [self._course_to_response(c) for c in self._course_registry.lookup(q)]

        @self.app.get("/courses/{code}", response_model=CourseResponse)
        async def get_course(code: str):
            """Get a course by code."""
            try:
                return self._course_to_response(self._course_registry.require(code))
            except RegistrarException as e:
                raise _http_error(e)

        @self.app.put("/courses/{code}/instructor", response_model=CourseResponse)
        async def assign_instructor(code: str, data: InstructorAssignment):
            """Assign an instructor to a course."""
            try:
                course = self._course_registry.assign_instructor(code, data.instructor_id)
                return self._course_to_response(course)
            except RegistrarException as e:
                raise _http_error(e)

        # Enrollment endpoints
        @self.app.post("/enrollments", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
        async def enroll(data: EnrollmentRequest):
            """Enroll a student in a course."""
            try:
                enrollment = self._ledger.enroll(data.student_id, data.course_code)
                return self._enrollment_to_response(enrollment)
            except RegistrarException as e:
                raise _http_error(e)

        @self.app.put("/enrollments/{student_id}/{course_code}/grades", response_model=EnrollmentResponse)
        async def set_grades(student_id: str, course_code: str, data: GradesUpdate):
            """Assign grades, creating the enrollment on first use."""
            try:
                enrollment = self._ledger.get_or_create(student_id, course_code)
                self._ledger.set_grades(enrollment, data.assignment, data.quiz, data.final)
                return self._enrollment_to_response(enrollment)
            except RegistrarException as e:
                raise _http_error(e)

        @self.app.post("/enrollments/{student_id}/{course_code}/attendance", response_model=EnrollmentResponse)
        async def record_attendance(student_id: str, course_code: str, data: AttendanceRecord):
            """Record one session of attendance."""
            try:
                enrollment = self._ledger.get_or_create(student_id, course_code)
                self._ledger.record_attendance(enrollment, data.present)
                return self._enrollment_to_response(enrollment)
            except RegistrarException as e:
                raise _http_error(e)

        @self.app.get("/students/{student_id}/enrollments", response_model=List[EnrollmentResponse])
        async def get_student_enrollments(student_id: str):
            """Get a student's enrollments."""
            if self._identity_store.get_student(student_id) is None:
                raise HTTPException(status_code=404, detail="Student not found")
            return [self._enrollment_to_response(e) for e in self._ledger.enrollments_for(student_id)]

        @self.app.get("/students/{student_id}/gpa", response_model=GpaResponse)
        async def get_student_gpa(student_id: str):
            """Get a student's GPA."""
            if self._identity_store.get_student(student_id) is None:
                raise HTTPException(status_code=404, detail="Student not found")
            return GpaResponse(
                student_id=student_id,
                gpa=self._ledger.gpa_for(student_id),
                enrollments=len(self._ledger.enrollments_for(student_id)),
            )

        @self.app.get("/students/{student_id}/report", response_class=PlainTextResponse)
        async def get_student_report(student_id: str, format: str = Query("csv", pattern="^(csv|json)$")):
            """Render a student's transcript."""
            try:
                return self._reports.generate_report(student_id, ReportFormat(format))
            except RegistrarException as e:
                raise _http_error(e)

        # Persistence endpoints
        @self.app.post("/persist", response_model=PersistResponse)
        async def persist():
            """Flush every collection to disk."""
            failed = self._platform.save()
            return PersistResponse(success=not failed, failed=failed)

        @self.app.get("/statistics", response_model=StatisticsResponse)
        async def get_statistics():
            """Get record counts."""
            return StatisticsResponse(
                success=True,
                message="Statistics retrieved successfully",
                statistics=self._platform.get_statistics()
            )

    def _user_to_response(self, user: User) -> UserResponse:
        """Convert a User entity to response model."""
        return UserResponse(
            user_id=user.id,
            user_type=user.user_type.name.lower(),
            name=user.name,
            email=user.email,
            courses=[e.course_code for e in user.enrollments] if hasattr(user, 'enrollments') else user.courses,
            created_at=user.created_at,
            updated_at=user.updated_at,
            version=user.version
        )

    def _course_to_response(self, course: Course) -> CourseResponse:
        """Convert a Course entity to response model."""
        return CourseResponse(
            code=course.code,
            title=course.title,
            instructor_id=course.instructor_id,
            total_sessions=course.total_sessions,
            created_at=course.created_at,
            updated_at=course.updated_at,
            version=course.version
        )

    def _enrollment_to_response(self, enrollment: Enrollment) -> EnrollmentResponse:
        """Convert an Enrollment entity to response model."""
        return EnrollmentResponse(
            student_id=enrollment.student_id,
            course_code=enrollment.course_code,
            assignment_score=enrollment.assignment_score,
            quiz_score=enrollment.quiz_score,
            final_score=enrollment.final_score,
            overall=self._ledger.compute_overall(enrollment),
            attendance_count=enrollment.attendance_count,
            total_sessions=enrollment.total_sessions,
            attendance_percentage=self._ledger.attendance_percentage(enrollment)
        )
