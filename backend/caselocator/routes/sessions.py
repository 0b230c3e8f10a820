"""
CaseLocator Backend — Location Session Routes
==============================================

What:  Server-held form sessions driving a LocationCascadeController.
How:   Each field edit is one POST; the response is the full
       CascadeSnapshot after the cascade step has settled.
Who:   The case create/edit form.

Request Flow (edit case):
    POST /api/location-sessions {"case": {...}}   → hydrated snapshot
    POST /{id}/state {"value": "Bavaria"}         → cities of Bavaria loaded
    POST /{id}/city-select {"city": {...}}        → loading_coordinates=true
    GET  /{id}                                    → coordinates filled in
    DELETE /{id}

Coordinate generation after a city selection runs in the background; pass
`?wait=true` to get the snapshot only once it has finished.
"""

import logging

from fastapi import APIRouter, Depends, Query, Response

from caselocator.schemas.location import (
    CascadeSnapshot,
    CitySelectRequest,
    ErrorResponse,
    FieldUpdateRequest,
    SessionCreateRequest,
)
from caselocator.services.session_registry import SessionRegistry, get_session_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/location-sessions", tags=["Location Sessions"])

_NOT_FOUND = {404: {"description": "Unknown or closed session", "model": ErrorResponse}}


@router.post(
    "",
    status_code=201,
    response_model=CascadeSnapshot,
    summary="Open a location session",
    description=(
        "Omit `case` for a new case. With a persisted case record the stored "
        "country/state/city are kept and their lists loaded without a reset."
    ),
)
async def create_session(
    body: SessionCreateRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    controller = await registry.create(body.case)
    return controller.snapshot()


@router.get("/{session_id}", response_model=CascadeSnapshot, responses=_NOT_FOUND)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    return registry.get(session_id).snapshot()


@router.delete("/{session_id}", status_code=204, responses=_NOT_FOUND)
async def close_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> Response:
    await registry.close(session_id)
    return Response(status_code=204)


@router.post("/{session_id}/country", response_model=CascadeSnapshot, responses=_NOT_FOUND)
async def change_country(
    session_id: str,
    body: FieldUpdateRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    """Clears state, city and coordinates, then loads the country's states."""
    controller = registry.get(session_id)
    await controller.change_country(body.value)
    return controller.snapshot()


@router.post("/{session_id}/state", response_model=CascadeSnapshot, responses=_NOT_FOUND)
async def change_state(
    session_id: str,
    body: FieldUpdateRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    controller = registry.get(session_id)
    await controller.change_state(body.value)
    return controller.snapshot()


@router.post("/{session_id}/city", response_model=CascadeSnapshot, responses=_NOT_FOUND)
async def change_city(
    session_id: str,
    body: FieldUpdateRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    """Free-text city entry; searches while no city list is loaded."""
    controller = registry.get(session_id)
    await controller.change_city(body.value)
    return controller.snapshot()


@router.post("/{session_id}/city-search", response_model=CascadeSnapshot, responses=_NOT_FOUND)
async def search_city(
    session_id: str,
    body: FieldUpdateRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    controller = registry.get(session_id)
    await controller.search_city(body.value)
    return controller.snapshot()


@router.post("/{session_id}/city-select", response_model=CascadeSnapshot, responses=_NOT_FOUND)
async def select_city(
    session_id: str,
    body: CitySelectRequest,
    wait: bool = Query(default=False, description="Wait for coordinate generation"),
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    controller = registry.get(session_id)
    controller.select_city(body.city)
    if wait:
        await controller.settle()
    return controller.snapshot()


@router.post(
    "/{session_id}/address-search", response_model=CascadeSnapshot, responses=_NOT_FOUND
)
async def search_address(
    session_id: str,
    body: FieldUpdateRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    controller = registry.get(session_id)
    controller.search_address(body.value)
    return controller.snapshot()


@router.post(
    "/{session_id}/address-select", response_model=CascadeSnapshot, responses=_NOT_FOUND
)
async def select_address(
    session_id: str,
    body: FieldUpdateRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    controller = registry.get(session_id)
    controller.select_address(body.value)
    return controller.snapshot()


@router.post(
    "/{session_id}/coordinates",
    response_model=CascadeSnapshot,
    responses={**_NOT_FOUND, 400: {"description": "No country selected", "model": ErrorResponse}},
    summary="Regenerate coordinates",
    description="Explicit regenerate; overwrites coordinates that are already set.",
)
async def regenerate_coordinates(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> CascadeSnapshot:
    controller = registry.get(session_id)
    await controller.regenerate_coordinates()
    return controller.snapshot()
