"""
api/routes/v1/roles.py -- Role CRUD routes.

Routes:
  GET    /roles        -- list all roles
  POST   /roles        -- create a role; 201, 409 on duplicate name
  GET    /roles/{id}   -- role detail; 404 if absent
  PUT    /roles/{id}   -- rename; 404 if absent, 409 on duplicate name
  DELETE /roles/{id}   -- 204; 404 if absent
"""

from fastapi import APIRouter, Depends, Response

from api import operations
from api.context import AppContext, get_context
from api.models import RoleInput, RoleResponse, RolesResponse

router = APIRouter()


@router.get("/roles", response_model=RolesResponse)
def list_roles(ctx: AppContext = Depends(get_context)) -> RolesResponse:
    return operations.list_roles(ctx)


@router.post("/roles", response_model=RoleResponse, status_code=201)
def create_role(body: RoleInput, ctx: AppContext = Depends(get_context)) -> RoleResponse:
    return operations.create_role(ctx, body)


@router.get("/roles/{role_id}", response_model=RoleResponse)
def get_role(role_id: int, ctx: AppContext = Depends(get_context)) -> RoleResponse:
    return operations.get_role(ctx, role_id)


@router.put("/roles/{role_id}", response_model=RoleResponse)
def update_role(role_id: int, body: RoleInput, ctx: AppContext = Depends(get_context)) -> RoleResponse:
    return operations.update_role(ctx, role_id, body)


@router.delete("/roles/{role_id}", status_code=204)
def delete_role(role_id: int, ctx: AppContext = Depends(get_context)) -> Response:
    operations.delete_role(ctx, role_id)
    return Response(status_code=204)
