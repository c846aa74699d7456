from fastapi import APIRouter, Depends

from coursehub.courses.catalog import CourseCatalog, strip_answer_key
from coursehub.courses.coupons import validate_coupon
from coursehub.courses.dependencies import get_catalog, get_store
from coursehub.courses.models import CouponValidate, CouponValidation
from coursehub.courses.store import RecordStore

router = APIRouter(tags=["Catalog"])


@router.get("/catalog")
async def list_catalog(catalog: CourseCatalog = Depends(get_catalog)):
    """Public course list"""
    courses = await catalog.list_courses()
    return {
        "courses": [
            {
                "course_id": c.course_id,
                "title": c.title,
                "description": c.description,
                "price": c.price,
                "image_url": c.image_url,
                "lesson_count": sum(len(m.lessons) for m in c.modules),
            }
            for c in courses
        ],
        "count": len(courses)
    }


@router.get("/catalog/{course_id}")
async def get_catalog_course(course_id: str, catalog: CourseCatalog = Depends(get_catalog)):
    """Course tree without the quiz answer key"""
    return strip_answer_key(await catalog.get_course(course_id))


@router.post("/coupons/validate", response_model=CouponValidation)
async def validate_coupon_endpoint(
    body: CouponValidate,
    store: RecordStore = Depends(get_store)
):
    discount = await validate_coupon(store, body.code, body.course_id)
    return CouponValidation(
        code=body.code.strip().upper(),
        course_id=body.course_id,
        discount_percentage=discount,
    )
