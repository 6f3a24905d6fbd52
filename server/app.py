from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from worldpoly.data import SqlGameStore, close_db, create_tables, init_db
from worldpoly.exceptions import GameNotFoundError, MonopolyError, StaleStateError, ValidationError
from worldpoly.game import ActionType
from worldpoly.rules import Action
from worldpoly.service import GameService
from worldpoly.settings import StoreBackend, get_settings
from worldpoly.store import InMemoryGameStore

from .schemas import (
    ActionDTO,
    CommandRequest,
    CommandResponse,
    CreateGameRequest,
    CreateGameResponse,
    GameEventDTO,
    JoinGameRequest,
    LegalActionsResponse,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if settings.store_backend == StoreBackend.SQL:
        await init_db(settings)
        await create_tables()
        store = SqlGameStore()
    else:
        store = InMemoryGameStore()
    app.state.service = GameService(store, settings)
    logger.info("World Monopoly server started (%s store)", settings.store_backend.value)

    yield

    await app.state.service.shutdown()
    if settings.store_backend == StoreBackend.SQL:
        await close_db()
    logger.info("World Monopoly server stopped")


app = FastAPI(title="World Monopoly Server", version="0.1.0", lifespan=lifespan)


# ---- Dependencies ----


def get_service(request: Request) -> GameService:
    return request.app.state.service


# ---- Error mapping ----


@app.exception_handler(GameNotFoundError)
async def game_not_found(request: Request, exc: GameNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StaleStateError)
async def stale_state(request: Request, exc: StaleStateError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def invalid_input(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def _parse_action(action_type: str, params: Dict[str, Any]) -> Action:
    try:
        kind = ActionType(action_type)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown action type: {action_type}")
    return Action(kind, **params)


def _command_response(result) -> CommandResponse:
    return CommandResponse(
        accepted=result.ok,
        reason=result.reason,
        version=result.state.version,
        events=[GameEventDTO(**event.to_dict()) for event in result.events],
    )


# ---- Games ----


@app.post("/games", response_model=CreateGameResponse)
async def create_game(req: CreateGameRequest, service: GameService = Depends(get_service)):
    game = await service.create_game(req.host_id, req.host_name, req.settings, req.name)
    snapshot = await service.snapshot(game.game_id)
    return CreateGameResponse(game_id=game.game_id, version=game.version, snapshot=snapshot)


@app.post("/games/{game_id}/players", response_model=CommandResponse)
async def join_game(game_id: str, req: JoinGameRequest, service: GameService = Depends(get_service)):
    result = await service.join(game_id, req.player_id, req.name, req.expected_version)
    return _command_response(result)


@app.post("/games/{game_id}/commands", response_model=CommandResponse)
async def execute_command(game_id: str, req: CommandRequest, service: GameService = Depends(get_service)):
    action = _parse_action(req.action_type, req.params)
    result = await service.execute(game_id, action, req.player_id, req.expected_version)
    return _command_response(result)


@app.get("/games/{game_id}/snapshot")
async def get_snapshot(game_id: str, service: GameService = Depends(get_service)):
    return await service.snapshot(game_id)


@app.get("/games/{game_id}/legal_actions", response_model=LegalActionsResponse)
async def legal_actions(game_id: str, player_id: str, service: GameService = Depends(get_service)):
    actions = await service.legal_actions(game_id, player_id)
    return LegalActionsResponse(
        game_id=game_id,
        player_id=player_id,
        actions=[ActionDTO(**action.to_dict()) for action in actions],
    )


# ---- Live updates ----


@app.websocket("/ws/games/{game_id}")
async def ws_game(websocket: WebSocket, game_id: str):
    await websocket.accept()
    service: GameService = websocket.app.state.service
    try:
        queue = await service.subscribe(game_id)
    except GameNotFoundError:
        await websocket.close(code=4404)
        return

    async def sender():
        while True:
            msg = await queue.get()
            await websocket.send_json(msg)

    sender_task = asyncio.create_task(sender())
    try:
        # Clients may also send commands: {"player_id", "action_type", "params", "expected_version"}
        while True:
            try:
                data = await websocket.receive_json()
            except WebSocketDisconnect:
                break
            reply = await _ws_command(service, game_id, data)
            await queue.put(reply)
    finally:
        await service.unsubscribe(game_id, queue)
        sender_task.cancel()


async def _ws_command(service: GameService, game_id: str, data: Any) -> Dict[str, Any]:
    try:
        req = CommandRequest(**data)
    except (TypeError, ValueError) as e:
        return {"type": "error", "detail": f"Malformed command: {e}"}
    try:
        kind = ActionType(req.action_type)
    except ValueError:
        return {"type": "error", "detail": f"Unknown action type: {req.action_type}"}
    try:
        result = await service.execute(game_id, Action(kind, **req.params), req.player_id, req.expected_version)
    except MonopolyError as e:
        return {"type": "error", "detail": str(e)}
    return {"type": "result", **_command_response(result).model_dump()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=True)
