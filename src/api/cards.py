"""Card API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_card_service, get_current_user
from src.models.user import User
from src.schemas.card import CardCreate, CardMove, CardReorder, CardResponse, CardUpdate
from src.services.card_service import CardService

router = APIRouter(prefix="/api/v1", tags=["cards"])


@router.post(
    "/columns/{column_id}/cards",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_card(
    column_id: str,
    card_data: CardCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CardService, Depends(get_card_service)],
):
    """Create a card at the end of a column."""
    return service.create_card(
        column_id,
        current_user.id,
        title=card_data.title,
        description=card_data.description,
        priority=card_data.priority,
        tags=card_data.tags,
        deadline=card_data.deadline,
    )


@router.patch("/cards/reorder", response_model=list[CardResponse])
def reorder_cards(
    reorder: CardReorder,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CardService, Depends(get_card_service)],
):
    """Reorder all active cards of a column."""
    return service.reorder_cards(reorder.column_id, current_user.id, reorder.card_ids)


@router.put("/cards/{card_id}", response_model=CardResponse)
def update_card(
    card_id: str,
    card_data: CardUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CardService, Depends(get_card_service)],
):
    """Update a card's fields."""
    return service.update_card(card_id, current_user.id, card_data.model_dump(exclude_unset=True))


@router.delete("/cards/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_card(
    card_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CardService, Depends(get_card_service)],
):
    """Delete a card."""
    service.delete_card(card_id, current_user.id)


@router.patch("/cards/{card_id}/move", response_model=CardResponse)
def move_card(
    card_id: str,
    move: CardMove,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CardService, Depends(get_card_service)],
):
    """Move a card within its column or to another column on the same board."""
    return service.move_card(card_id, current_user.id, move.column_id, move.position)


@router.patch("/cards/{card_id}/archive", response_model=CardResponse)
def archive_card(
    card_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CardService, Depends(get_card_service)],
):
    """Archive a card."""
    return service.archive_card(card_id, current_user.id)


@router.patch("/cards/{card_id}/restore", response_model=CardResponse)
def restore_card(
    card_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CardService, Depends(get_card_service)],
):
    """Restore an archived card to the end of its column."""
    return service.restore_card(card_id, current_user.id)


@router.delete("/cards/{card_id}/permanent", status_code=status.HTTP_204_NO_CONTENT)
def permanent_delete_card(
    card_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[CardService, Depends(get_card_service)],
):
    """Permanently delete an archived card."""
    service.permanent_delete_card(card_id, current_user.id)
