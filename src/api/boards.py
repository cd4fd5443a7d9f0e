"""Board API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_board_service, get_current_user
from src.models.user import User
from src.schemas.board import BoardCreate, BoardDetailResponse, BoardResponse, BoardUpdate
from src.schemas.card import ArchivedCardResponse
from src.services.board_service import BoardService

router = APIRouter(prefix="/api/v1/boards", tags=["boards"])


@router.get("", response_model=list[BoardResponse])
def get_boards(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[BoardService, Depends(get_board_service)],
):
    """Get all boards owned by the current user."""
    result = []
    for board, column_count in service.list_boards(current_user.id):
        board_response = BoardResponse.model_validate(board)
        board_response.column_count = column_count
        result.append(board_response)
    return result


@router.post("", response_model=BoardResponse, status_code=status.HTTP_201_CREATED)
def create_board(
    board_data: BoardCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[BoardService, Depends(get_board_service)],
):
    """Create a new board with the default columns."""
    board = service.create_board(current_user.id, board_data.title, board_data.icon)

    board_response = BoardResponse.model_validate(board)
    board_response.column_count = len(board.columns)
    return board_response


@router.get("/{board_id}", response_model=BoardDetailResponse)
def get_board(
    board_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[BoardService, Depends(get_board_service)],
):
    """Get a board with its columns and active cards."""
    board = service.get_board(board_id, current_user.id)

    board_response = BoardDetailResponse.model_validate(board)
    board_response.column_count = len(board.columns)
    return board_response


@router.put("/{board_id}", response_model=BoardResponse)
def update_board(
    board_id: str,
    board_data: BoardUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[BoardService, Depends(get_board_service)],
):
    """Update a board's title or icon."""
    return service.update_board(
        board_id, current_user.id, board_data.model_dump(exclude_unset=True)
    )


@router.patch("/{board_id}/favorite", response_model=BoardResponse)
def toggle_favorite(
    board_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[BoardService, Depends(get_board_service)],
):
    """Toggle the board's favorite flag."""
    return service.toggle_favorite(board_id, current_user.id)


@router.delete("/{board_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_board(
    board_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[BoardService, Depends(get_board_service)],
):
    """Delete a board and everything on it."""
    service.delete_board(board_id, current_user.id)


@router.get("/{board_id}/archived-cards", response_model=list[ArchivedCardResponse])
def get_archived_cards(
    board_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[BoardService, Depends(get_board_service)],
):
    """Get archived cards on a board, most recently archived first."""
    result = []
    for card in service.list_archived_cards(board_id, current_user.id):
        card_response = ArchivedCardResponse.model_validate(card)
        card_response.column_title = card.column.title
        result.append(card_response)
    return result
