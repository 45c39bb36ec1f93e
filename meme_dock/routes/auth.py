"""Authentication status endpoints."""

from fastapi import APIRouter

from ..dependencies import AdminUser, OptionalAuth

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/status")
async def auth_status(auth: OptionalAuth) -> dict:
    """Report whether the caller is signed in."""
    if not auth.is_authenticated:
        return {"authenticated": False, "message": "Not authenticated"}
    return {
        "authenticated": True,
        "isAdmin": auth.is_admin,
        "userId": auth.user_id,
        "message": "User is authenticated",
    }


@router.get("/admin")
async def auth_admin(user_id: AdminUser) -> dict:
    """Succeeds only for members of the admin team."""
    return {
        "authenticated": True,
        "isAdmin": True,
        "userId": user_id,
        "message": "User is authenticated and has admin privileges",
    }
