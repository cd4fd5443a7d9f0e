"""Column API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_column_service, get_current_user
from src.models.user import User
from src.schemas.column import ColumnCreate, ColumnReorder, ColumnResponse, ColumnUpdate
from src.services.column_service import ColumnService

router = APIRouter(prefix="/api/v1", tags=["columns"])


@router.post(
    "/boards/{board_id}/columns",
    response_model=ColumnResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_column(
    board_id: str,
    column_data: ColumnCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[ColumnService, Depends(get_column_service)],
):
    """Add a column at the end of a board."""
    return service.create_column(board_id, current_user.id, column_data.title)


@router.patch("/columns/reorder", response_model=list[ColumnResponse])
def reorder_columns(
    reorder: ColumnReorder,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[ColumnService, Depends(get_column_service)],
):
    """Reorder all columns of a board."""
    return service.reorder_columns(reorder.board_id, current_user.id, reorder.column_ids)


@router.put("/columns/{column_id}", response_model=ColumnResponse)
def update_column(
    column_id: str,
    column_data: ColumnUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[ColumnService, Depends(get_column_service)],
):
    """Rename a column or move it to a new position."""
    return service.update_column(
        column_id, current_user.id, title=column_data.title, position=column_data.position
    )


@router.delete("/columns/{column_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_column(
    column_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[ColumnService, Depends(get_column_service)],
):
    """Delete a column and its cards."""
    service.delete_column(column_id, current_user.id)
