"""
CourseHub course system - router and error handler registration
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from coursehub.courses.admin_router import router as admin_router
from coursehub.courses.catalog_router import router as catalog_router
from coursehub.courses.enrollment_router import router as enrollment_router
from coursehub.courses.errors import CourseHubError, StoreUnavailable

logger = logging.getLogger(__name__)


async def course_error_handler(request: Request, exc: CourseHubError):
    if isinstance(exc, StoreUnavailable):
        logger.warning("%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def setup_course_routes(app: FastAPI):
    """Register all course-related routers"""
    app.add_exception_handler(CourseHubError, course_error_handler)

    app.include_router(enrollment_router, prefix="/courses")
    app.include_router(catalog_router, prefix="/courses")
    app.include_router(admin_router, prefix="/courses")

    logger.info("Course routes registered")
