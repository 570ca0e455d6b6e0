"""Daily puzzle API routes."""

import logging

from fastapi import APIRouter, HTTPException

from ...models.errors import IllegalMoveError, TransitionError
from ...models.puzzle import (
    GameStatus,
    MoveRequest,
    MoveResponse,
    SessionView,
    SubmitResponse,
)
from ...services.session_controller import get_session_controller

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/puzzle", tags=["puzzle"])


@router.get("", response_model=SessionView)
async def get_session() -> SessionView:
    """Get the current session, fetching the daily puzzle on first use."""
    controller = get_session_controller()
    await controller.ensure_loaded()
    return controller.view()


@router.post("/load", response_model=SessionView)
async def load_daily_puzzle() -> SessionView:
    """Fetch the daily puzzle again and restart the session around it."""
    controller = get_session_controller()
    await controller.load_daily()
    return controller.view()


@router.post("/move", response_model=MoveResponse)
async def make_move(request: MoveRequest) -> MoveResponse:
    """Add a dropped piece to the current attempt.

    Illegal moves are not errors: they come back with accepted=false and
    the session unchanged.
    """
    controller = get_session_controller()
    try:
        san = controller.record_move(
            request.from_square,
            request.to_square,
            request.promotion,
        )
    except (IllegalMoveError, TransitionError) as e:
        logger.debug(f"Move {request.from_square}-{request.to_square} rejected: {e}")
        return MoveResponse(accepted=False, view=controller.view())

    return MoveResponse(accepted=True, san=san, view=controller.view())


@router.post("/submit", response_model=SubmitResponse)
async def submit_attempt() -> SubmitResponse:
    """Score the current attempt."""
    controller = get_session_controller()
    try:
        state = controller.submit_attempt()
    except TransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if state.status == GameStatus.ERROR:
        raise HTTPException(status_code=500, detail=state.error_message)

    record = state.history[-1]
    return SubmitResponse(
        feedback=list(record.feedback),
        solved=state.status == GameStatus.WON,
        view=controller.view(),
    )


@router.post("/reset", response_model=SessionView)
async def reset_current_input() -> SessionView:
    """Clear the moves of the current attempt."""
    controller = get_session_controller()
    try:
        controller.reset_current_input()
    except TransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return controller.view()


@router.post("/rules-seen")
async def mark_rules_seen() -> dict:
    """Remember that the player has read the rules for this puzzle."""
    controller = get_session_controller()
    return {"marked": controller.mark_rules_seen()}
