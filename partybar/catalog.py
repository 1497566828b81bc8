"""Drink catalog managed from the admin panel."""

import logging
from typing import List

from partybar.errors import DrinkNotFoundError
from partybar.gate import new_id
from partybar.repository import Repository
from partybar.schemas import Drink, DrinkCreate, DrinkUpdate

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "https://picsum.photos/400/400"

DEFAULT_DRINKS = [
    Drink(
        id="1",
        name="Neon Sunset",
        short_desc="Fruity and refreshing",
        description="A burst of citrus with a smooth grenadine finish. Perfect to start the night.",
        ingredients=["Vodka", "Orange Juice", "Grenadine", "Ice"],
        image_url="https://picsum.photos/400/400?random=1",
        cost=1,
    ),
    Drink(
        id="2",
        name="Dark Matter",
        short_desc="Strong and intense",
        description="Espresso shaken with coffee liqueur and premium vodka. For those who need energy.",
        ingredients=["Vodka", "Coffee Liqueur", "Espresso", "Coffee Beans"],
        image_url="https://picsum.photos/400/400?random=2",
        cost=1,
    ),
    Drink(
        id="3",
        name="Electric Blue",
        short_desc="Sharp and vibrant",
        description="Blue curaçao brings the electric colour, balanced with lemon and soda.",
        ingredients=["Gin", "Blue Curaçao", "Lemon", "Soda"],
        image_url="https://picsum.photos/400/400?random=3",
        cost=1,
    ),
]


class DrinkCatalog:
    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def list_drinks(self) -> List[Drink]:
        return self._repo.list_drinks()

    def get(self, drink_id: str) -> Drink:
        drink = self._repo.get_drink(drink_id)
        if drink is None:
            raise DrinkNotFoundError(drink_id)
        return drink

    def create(self, payload: DrinkCreate) -> Drink:
        drink = Drink(
            id=new_id(),
            name=payload.name,
            short_desc=payload.short_desc or "Refreshing drink",
            description=payload.description or "No description.",
            ingredients=payload.ingredients,
            image_url=payload.image_url or PLACEHOLDER_IMAGE,
            cost=payload.cost,
        )
        self._repo.save_drink(drink)
        logger.info("Drink %s (%s) added at %d coin(s)", drink.name, drink.id, drink.cost)
        return drink

    def update(self, drink_id: str, update: DrinkUpdate) -> Drink:
        """Edit a drink. Orders already placed keep their own snapshot."""
        drink = self.get(drink_id)
        changes = update.model_dump(exclude_none=True)
        drink = Drink.model_validate({**drink.model_dump(), **changes})
        self._repo.save_drink(drink)
        logger.info("Drink %s updated: %s", drink.id, ", ".join(sorted(changes)) or "no changes")
        return drink

    def delete(self, drink_id: str) -> None:
        if not self._repo.delete_drink(drink_id):
            raise DrinkNotFoundError(drink_id)
        logger.info("Drink %s deleted", drink_id)

    def seed_defaults(self) -> int:
        """Fill an empty catalog with the default drinks. Returns how many were added."""
        if self._repo.list_drinks():
            return 0
        for drink in DEFAULT_DRINKS:
            self._repo.save_drink(drink)
        logger.info("Seeded %d default drinks", len(DEFAULT_DRINKS))
        return len(DEFAULT_DRINKS)
