"""Controller layer for login, rooms and users."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import HTTPAuthorizationCredentials

from roombooking.controllers.dependencies import (
    bearer_scheme,
    get_auth_service,
    get_current_caller,
    get_room_service,
    get_user_service,
    to_http_exception,
)
from roombooking.controllers.schemas import (
    LoginRequest,
    LoginResponse,
    RoomRequest,
    RoomResponse,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from roombooking.domain.errors import BookingEngineError
from roombooking.domain.models import CallerContext
from roombooking.services.auth_service import AuthService, InvalidCredentialsError
from roombooking.services.directory_service import RoomRegistryService, UserDirectoryService
from roombooking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["directory"])


@router.post("/auth/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    user_service: UserDirectoryService = Depends(get_user_service),
) -> LoginResponse:
    try:
        token = auth_service.login(payload.email, payload.password)
        caller = auth_service.resolve_caller(token)
        user = user_service.get_user(caller, caller.user_id)
        return LoginResponse(access_token=token, user=UserResponse.from_domain(user))
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to login",
        ) from exc


@router.post(
    "/auth/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_caller)],
)
async def logout(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    if credentials is not None:
        auth_service.logout(credentials.credentials)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/rooms",
    response_model=list[RoomResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(get_current_caller)],
)
async def list_rooms(
    room_service: RoomRegistryService = Depends(get_room_service),
) -> list[RoomResponse]:
    return [RoomResponse.from_domain(room) for room in room_service.list_rooms()]


@router.get(
    "/rooms/{room_id}",
    response_model=RoomResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(get_current_caller)],
)
async def get_room(
    room_id: int,
    room_service: RoomRegistryService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return RoomResponse.from_domain(room_service.get_room(room_id))
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    payload: RoomRequest,
    caller: CallerContext = Depends(get_current_caller),
    room_service: RoomRegistryService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = room_service.upsert_room(
            caller,
            name=payload.name,
            location=payload.location,
            capacity=payload.capacity,
            equipment=payload.equipment,
        )
        return RoomResponse.from_domain(room)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc


@router.put("/rooms/{room_id}", response_model=RoomResponse, status_code=status.HTTP_200_OK)
async def update_room(
    room_id: int,
    payload: RoomRequest,
    caller: CallerContext = Depends(get_current_caller),
    room_service: RoomRegistryService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = room_service.upsert_room(
            caller,
            room_id=room_id,
            name=payload.name,
            location=payload.location,
            capacity=payload.capacity,
            equipment=payload.equipment,
        )
        return RoomResponse.from_domain(room)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: int,
    caller: CallerContext = Depends(get_current_caller),
    room_service: RoomRegistryService = Depends(get_room_service),
) -> Response:
    try:
        room_service.delete_room(caller, room_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc


@router.get("/users", response_model=list[UserResponse], status_code=status.HTTP_200_OK)
async def list_users(
    caller: CallerContext = Depends(get_current_caller),
    user_service: UserDirectoryService = Depends(get_user_service),
) -> list[UserResponse]:
    try:
        return [UserResponse.from_domain(user) for user in user_service.list_users(caller)]
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc


@router.get("/users/{user_id}", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def get_user(
    user_id: int,
    caller: CallerContext = Depends(get_current_caller),
    user_service: UserDirectoryService = Depends(get_user_service),
) -> UserResponse:
    try:
        return UserResponse.from_domain(user_service.get_user(caller, user_id))
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreateRequest,
    caller: CallerContext = Depends(get_current_caller),
    user_service: UserDirectoryService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = user_service.create_user(
            caller,
            full_name=payload.full_name,
            email=payload.email,
            password=payload.password,
            role=payload.role,
            phone_number=payload.phone_number,
        )
        return UserResponse.from_domain(user)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc


@router.put("/users/{user_id}", response_model=UserResponse, status_code=status.HTTP_200_OK)
async def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    caller: CallerContext = Depends(get_current_caller),
    user_service: UserDirectoryService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = user_service.update_user(
            caller,
            user_id,
            full_name=payload.full_name,
            email=payload.email,
            phone_number=payload.phone_number,
            role=payload.role,
            password=payload.password,
        )
        return UserResponse.from_domain(user)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    caller: CallerContext = Depends(get_current_caller),
    user_service: UserDirectoryService = Depends(get_user_service),
) -> Response:
    try:
        user_service.delete_user(caller, user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except BookingEngineError as exc:
        raise to_http_exception(exc) from exc
