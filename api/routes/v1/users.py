"""
api/routes/v1/users.py -- User CRUD routes.

Routes:
  GET    /users        -- list all users
  POST   /users        -- create a user (password is bcrypt-hashed); 201
  GET    /users/{id}   -- user detail; 404 if absent
  PUT    /users/{id}   -- replace name and password; 404 if absent
  DELETE /users/{id}   -- 204; 404 if absent

Security: responses are built from UserResponse, which has no password or
hash field. Creating and updating users hash in the worker thread pool
(plain def handlers) so bcrypt does not stall the event loop.
"""

from fastapi import APIRouter, Depends, Response

from api import operations
from api.context import AppContext, get_context
from api.models import UserInput, UserResponse, UsersResponse

router = APIRouter()


@router.get("/users", response_model=UsersResponse)
def list_users(ctx: AppContext = Depends(get_context)) -> UsersResponse:
    return operations.list_users(ctx)


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(body: UserInput, ctx: AppContext = Depends(get_context)) -> UserResponse:
    return operations.create_user(ctx, body)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: int, ctx: AppContext = Depends(get_context)) -> UserResponse:
    return operations.get_user(ctx, user_id)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(user_id: int, body: UserInput, ctx: AppContext = Depends(get_context)) -> UserResponse:
    return operations.update_user(ctx, user_id, body)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(user_id: int, ctx: AppContext = Depends(get_context)) -> Response:
    operations.delete_user(ctx, user_id)
    return Response(status_code=204)
