"""
slip.schemas
~~~~~~~~~~~~
Pydantic schemas and models for the HTTP API and the Socket.IO protocol.
"""
from slip.schemas.api_response import ApiResponse
from slip.schemas.party import (
    CreateRoom,
    Disconnect,
    JoinRoom,
    PlayerData,
    RoomCommand,
    RoomErrorData,
    RoomPreviewData,
    RoomStartedData,
    RoomStateData,
    SetReady,
    StartRoom,
)

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()
