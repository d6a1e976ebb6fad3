"""
Sliding-window rate limiting backed by the ``rate_limit_hits`` table, so the
limit holds across worker processes.
"""
import logging
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from carpark.core.config import settings
from carpark.db.session import get_db
from carpark.models.system import RateLimitHit
from carpark.utils.clock import as_utc, utcnow

logger = logging.getLogger(__name__)


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "anonymous"


class RateLimiter:
    """FastAPI dependency: ``Depends(RateLimiter("bookings", 5))``."""

    def __init__(self, bucket: str, limit: int, window_seconds: Optional[int] = None):
        self.bucket = bucket
        self.limit = limit
        self.window_seconds = window_seconds

    def __call__(self, request: Request, db: Session = Depends(get_db)) -> None:
        window = self.window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS
        now = utcnow()
        start = now - timedelta(seconds=window)
        key = client_key(request)

        # Prune the whole bucket, clients that never return included
        db.query(RateLimitHit).filter(
            RateLimitHit.bucket == self.bucket,
            RateLimitHit.created_at < start,
        ).delete(synchronize_session=False)

        count, oldest = (
            db.query(func.count(RateLimitHit.id), func.min(RateLimitHit.created_at))
            .filter(RateLimitHit.bucket == self.bucket, RateLimitHit.client_key == key)
            .one()
        )
        if count >= self.limit:
            db.commit()
            retry_after = max(1, int((as_utc(oldest) + timedelta(seconds=window) - now).total_seconds()) + 1)
            logger.warning("Rate limit hit: %s for %s", self.bucket, key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(retry_after)},
            )

        db.add(RateLimitHit(bucket=self.bucket, client_key=key, created_at=now))
        db.commit()


def purge_expired_hits(db: Session, window_seconds: Optional[int] = None) -> int:
    """Delete hits older than the window in every bucket, including buckets nobody calls any more."""
    cutoff = utcnow() - timedelta(seconds=window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS)
    count = (
        db.query(RateLimitHit)
        .filter(RateLimitHit.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count
