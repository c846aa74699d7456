from datetime import datetime
from typing import Optional

from coursehub.courses.errors import InvalidCoupon
from coursehub.courses.store import RecordStore


async def validate_coupon(
    store: RecordStore,
    code: str,
    course_id: str,
    now: Optional[datetime] = None,
) -> int:
    """
    Check a coupon code for a course.

    Returns the discount percentage. Codes are stored upper-case; a coupon
    without course_id applies to every course.
    """
    coupon = await store.select_one("coupons", {"code": code.strip().upper()})
    if not coupon:
        raise InvalidCoupon("Invalid coupon")
    if not coupon.get("is_active", False):
        raise InvalidCoupon("Coupon is no longer active")

    expires_at = coupon.get("expires_at")
    if expires_at and expires_at < (now or datetime.utcnow()):
        raise InvalidCoupon("Coupon expired")

    if coupon.get("course_id") and coupon["course_id"] != course_id:
        raise InvalidCoupon("Coupon is not valid for this course")

    return coupon["discount_percentage"]
