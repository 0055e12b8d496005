from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from app.internal.book_store import BookStore
from app.internal.models import GoalRead, GoalUpdate
from app.routers.api.books import get_book_store

router = APIRouter(prefix="/goals", tags=["Goals"])


@router.get("/{year}", response_model=GoalRead)
async def get_goal(
    store: Annotated[BookStore, Depends(get_book_store)],
    year: int,
):
    goal = store.get_goal(year)
    # an unset goal is not an error, the UI shows "no goal"
    return GoalRead(year=year, target=goal.target if goal else None)


@router.post("", response_model=GoalRead)
async def set_goal(
    store: Annotated[BookStore, Depends(get_book_store)],
    body: GoalUpdate,
):
    try:
        goal = store.set_goal(body.year, body.target)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to save goal")
    return GoalRead(year=goal.year, target=goal.target)
