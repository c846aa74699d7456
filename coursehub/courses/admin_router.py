from typing import List

from fastapi import APIRouter, Depends

from coursehub.courses.dependencies import get_store, require_admin
from coursehub.courses.enrollments import get_progress_overview
from coursehub.courses.models import StudentProgressEntry
from coursehub.courses.store import RecordStore

router = APIRouter(tags=["Admin"])


@router.get("/admin/progress", response_model=List[StudentProgressEntry])
async def student_progress_overview(
    store: RecordStore = Depends(get_store),
    admin_id: str = Depends(require_admin)
):
    """Progress of every student in every course (read-only)"""
    return await get_progress_overview(store)
