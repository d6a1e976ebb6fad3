from typing import Optional, List, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


# Paginated response wrapper: used by all list endpoints
class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


# Error responses
class ErrorResponse(BaseModel):
    error: str
    message: str


class MessageResponse(BaseModel):
    message: str


# Operator / admin dashboard
class StatusCount(BaseModel):
    status: str
    count: int


class DashboardStats(BaseModel):
    total_bookings: int
    total_revenue: int
    total_users: int
    todays_drop_offs: int
    todays_pick_ups: int
    on_site: int
    available_spaces: Optional[int] = None
    by_status: List[StatusCount] = []
