from fastapi import APIRouter, Depends, status
from typing import List

from frontdesk.database.mongo_store import get_store
from frontdesk.database.store import FrontDeskStore
from frontdesk.models.room import RoomCreate, RoomUpdate, RoomResponse, RoomStatus, RoomType
from frontdesk.services.lifecycle import LifecycleController, get_controller
from frontdesk.services.reports import guest_history, room_matrix_summary
from frontdesk.utils.helpers import serialize_doc, serialize_docs

router = APIRouter(prefix="/rooms", tags=["Rooms"])

@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    room: RoomCreate,
    controller: LifecycleController = Depends(get_controller)
):
    """Add a room to the inventory; new rooms start available"""
    created = await controller.create_room(room.model_dump())
    return serialize_doc(created)

@router.get("/", response_model=List[RoomResponse])
async def get_rooms(
    floor: int = None,
    status: RoomStatus = None,
    type: RoomType = None,
    store: FrontDeskStore = Depends(get_store)
):
    """Get all rooms with optional filtering"""
    filter_query = {}
    if floor is not None:
        filter_query["floor"] = floor
    if status:
        filter_query["status"] = status.value
    if type:
        filter_query["type"] = type.value

    rooms = await store.list_rooms(filter_query)
    return serialize_docs(rooms)

@router.get("/summary")
async def get_room_summary(store: FrontDeskStore = Depends(get_store)):
    """Room matrix counts by status plus house occupancy"""
    return await room_matrix_summary(store)

@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(
    room_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    return serialize_doc(await controller.get_room(room_id))

@router.put("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: str,
    room_update: RoomUpdate,
    controller: LifecycleController = Depends(get_controller)
):
    """Update room number, floor or type"""
    updated = await controller.update_room(room_id, room_update.model_dump(exclude_unset=True))
    return serialize_doc(updated)

@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    """Delete room. Refused while a guest is checked in."""
    await controller.delete_room(room_id)
    return None

@router.post("/{room_id}/cleaning-complete", response_model=RoomResponse)
async def confirm_cleaning(
    room_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    return serialize_doc(await controller.confirm_cleaning(room_id))

@router.post("/{room_id}/maintenance", response_model=RoomResponse)
async def start_maintenance(
    room_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    return serialize_doc(await controller.start_maintenance(room_id))

@router.delete("/{room_id}/maintenance", response_model=RoomResponse)
async def end_maintenance(
    room_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    return serialize_doc(await controller.end_maintenance(room_id))

@router.get("/{room_id}/history")
async def get_room_history(
    room_id: str,
    controller: LifecycleController = Depends(get_controller)
):
    """Checked-out stays of this room, newest first"""
    await controller.get_room(room_id)
    history = await guest_history(controller.store, room_id, "room")
    return serialize_docs(history)
