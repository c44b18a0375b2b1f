from fastapi import APIRouter
from leave_api.api.v1.endpoints import auth, users, leaves, health

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(leaves.router, prefix="/leaves", tags=["leaves"])
api_router.include_router(users.router, prefix="", tags=["users"])
