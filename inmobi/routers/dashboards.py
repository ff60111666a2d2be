"""
Dashboard endpoints for users, agents and admins, plus admin account management.
"""

from fastapi import APIRouter, Depends, Query, Path
from typing import Optional
from uuid import UUID
import math

from inmobi.models.user import User, UserRole, SubscriptionTier
from inmobi.services.auth import AuthService
from inmobi.services.dashboard import DashboardService
from inmobi.schemas.dashboard import UserDashboardResponse, AgentDashboardResponse, AdminDashboardResponse
from inmobi.schemas.user import (
    UserResponse,
    UserListResponse,
    UserStatusUpdate,
    UserRoleUpdate,
    UserVerifiedUpdate,
)
from inmobi.schemas.error import AUTH_ERROR_RESPONSES, CRUD_ERROR_RESPONSES
from inmobi.utils.dependencies import (
    get_auth_service,
    get_current_active_user,
    get_current_admin_user,
    get_current_agent_user,
    get_dashboard_service,
)


router = APIRouter(tags=["Dashboards"])


@router.get("/dashboard/user", response_model=UserDashboardResponse, summary="User dashboard")
async def get_user_dashboard(
    current_user: User = Depends(get_current_active_user),
    dashboard_service: DashboardService = Depends(get_dashboard_service)
) -> UserDashboardResponse:
    return UserDashboardResponse.model_validate(await dashboard_service.get_user_dashboard(current_user))


@router.get(
    "/dashboard/agent",
    response_model=AgentDashboardResponse,
    summary="Agent dashboard",
    description="Agent or admin only",
    responses=AUTH_ERROR_RESPONSES
)
async def get_agent_dashboard(
    current_user: User = Depends(get_current_agent_user),
    dashboard_service: DashboardService = Depends(get_dashboard_service)
) -> AgentDashboardResponse:
    return AgentDashboardResponse.model_validate(await dashboard_service.get_agent_dashboard(current_user))


@router.get(
    "/dashboard/admin",
    response_model=AdminDashboardResponse,
    summary="Admin dashboard",
    responses=AUTH_ERROR_RESPONSES
)
async def get_admin_dashboard(
    current_user: User = Depends(get_current_admin_user),
    dashboard_service: DashboardService = Depends(get_dashboard_service)
) -> AdminDashboardResponse:
    return AdminDashboardResponse.model_validate(await dashboard_service.get_admin_dashboard())


@router.get(
    "/admin/users",
    response_model=UserListResponse,
    summary="List users",
    description="Paginated account list, filterable by role, tier, status and a text search",
    responses=AUTH_ERROR_RESPONSES
)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    role: Optional[UserRole] = Query(None),
    tier: Optional[SubscriptionTier] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserListResponse:
    skip = (page - 1) * page_size
    users, total = await auth_service.list_users(
        role=role, tier=tier, is_active=is_active, search=search, skip=skip, limit=page_size
    )
    total_pages = math.ceil(total / page_size) if total > 0 else 0
    return UserListResponse(
        users=[UserResponse.model_validate(u.to_dict()) for u in users],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1,
    )


@router.patch(
    "/admin/users/{user_id}/status",
    response_model=UserResponse,
    summary="Activate or deactivate a user",
    responses=CRUD_ERROR_RESPONSES
)
async def update_user_status(
    status_data: UserStatusUpdate,
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_user_status(user_id, status_data.is_active, current_user)
    return UserResponse.model_validate(user.to_dict())


@router.patch(
    "/admin/users/{user_id}/role",
    response_model=UserResponse,
    summary="Change a user's role",
    responses=CRUD_ERROR_RESPONSES
)
async def update_user_role(
    role_data: UserRoleUpdate,
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_user_role(user_id, role_data.role, current_user)
    return UserResponse.model_validate(user.to_dict())


@router.patch(
    "/admin/users/{user_id}/verified",
    response_model=UserResponse,
    summary="Mark a user verified",
    responses=CRUD_ERROR_RESPONSES
)
async def update_user_verified(
    verified_data: UserVerifiedUpdate,
    user_id: UUID = Path(..., description="User ID"),
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_user_verified(user_id, verified_data.is_verified, current_user)
    return UserResponse.model_validate(user.to_dict())
