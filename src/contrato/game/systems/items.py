"""Powers, advantages and equipment owned by characters."""

from typing import TYPE_CHECKING, Any

import structlog

from contrato.database.models import Item, ItemType

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from contrato.database.models import Character

logger = structlog.get_logger(__name__)

DEFAULT_POWER_ACTIVATION = "ação"
DEFAULT_POWER_COST = 0

ITEM_FIELDS = ("description", "activation", "cost", "bonus")


def prepare_item_data(item: Item) -> Item:
    """
    Fill in the defaults an item of its type should show.

    Args:
        item: The Item model instance (mutated)

    Returns:
        The same item
    """
    item.description = item.description or ""

    if item.item_type is ItemType.POWER:
        item.activation = item.activation or DEFAULT_POWER_ACTIVATION
        item.cost = item.cost or DEFAULT_POWER_COST

    if item.item_type is ItemType.ADVANTAGE:
        item.bonus = item.bonus or ""

    return item


def create_item(
    session: "AsyncSession",
    character: "Character",
    name: str,
    item_type: ItemType | str,
    **fields: Any,
) -> Item:
    """
    Give a character a new item.

    Args:
        session: Database session
        character: Owning character
        name: Item name
        item_type: power, advantage or equipment
        **fields: description, activation, cost or bonus

    Returns:
        The new, prepared Item

    Raises:
        ValueError: If the type or a field name is unknown
    """
    unknown = set(fields) - set(ITEM_FIELDS)
    if unknown:
        raise ValueError(f"Unknown item fields: {', '.join(sorted(unknown))}")

    item = Item(owner_id=character.id, name=name, item_type=ItemType(item_type), **fields)
    prepare_item_data(item)
    session.add(item)

    logger.info(
        "item_created",
        character_id=str(character.id),
        item_name=name,
        item_type=item.item_type.value,
    )

    return item
