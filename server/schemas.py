from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CreateGameRequest(BaseModel):
    host_id: str = Field(min_length=1, max_length=128)
    host_name: str = Field(min_length=1, max_length=64)
    name: str = ""
    settings: Dict[str, Any] = Field(default_factory=dict)


class CreateGameResponse(BaseModel):
    game_id: str
    version: int
    snapshot: Dict[str, Any]


class JoinGameRequest(BaseModel):
    player_id: str = Field(min_length=1, max_length=128)
    name: str
    expected_version: Optional[int] = None


class CommandRequest(BaseModel):
    player_id: str
    action_type: str
    params: Dict[str, Any] = Field(default_factory=dict)
    expected_version: Optional[int] = None


class GameEventDTO(BaseModel):
    type: str
    player_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    message: str = ""


class CommandResponse(BaseModel):
    accepted: bool
    reason: Optional[str] = None
    version: int
    events: List[GameEventDTO] = Field(default_factory=list)


class ActionDTO(BaseModel):
    type: str
    params: Dict[str, Any] = Field(default_factory=dict)


class LegalActionsResponse(BaseModel):
    game_id: str
    player_id: str
    actions: List[ActionDTO]
