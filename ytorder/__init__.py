"""ytorder - sort YouTube playlists with the fewest possible moves."""

from ytorder.models import (
    InvalidPlaylistError,
    Item,
    MissingHandleError,
    MoveOperation,
    Order,
    ReferenceNotFoundError,
)

__version__ = "0.1.0"

__all__ = [
    "InvalidPlaylistError",
    "Item",
    "MissingHandleError",
    "MoveOperation",
    "Order",
    "ReferenceNotFoundError",
    "__version__",
]
