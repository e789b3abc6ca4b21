"""
API Router configuration.

Aggregates all v1 API endpoints with proper tagging and prefixes.
"""

from fastapi import APIRouter

from jobmarket.api.v1.endpoints import auth, jobs, users

api_router = APIRouter()

# Authentication (register/login/refresh/logout are public; logout-all is not)
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["authentication"]
)

# Own profile and uploads (authenticated)
api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"]
)

# Job postings (public reads, employer writes)
api_router.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["jobs"]
)
