"""Errors raised by the wardrobe and outfit store gateways."""


class StoreError(Exception):
    """The backing store failed or is unreachable; the caller may retry."""


class ItemNotFoundError(StoreError):
    """No wardrobe item exists for the given URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No wardrobe item with url '{url}'")
        self.url = url


class OutfitNameTakenError(StoreError):
    """A saved outfit already uses this name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"An outfit named '{name}' already exists")
        self.name = name


class OutfitCombinationTakenError(StoreError):
    """The same top/bottom/shoes combination is already saved."""

    def __init__(self, combination: tuple) -> None:
        super().__init__("This outfit combination is already saved")
        self.combination = combination


__all__ = ["StoreError", "ItemNotFoundError", "OutfitNameTakenError", "OutfitCombinationTakenError"]
