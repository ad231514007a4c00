"""
Error taxonomy for Link Dispenser.

Three failure kinds cross the boundary between the core and the HTTP layer:

    - InvalidInput   : the key normalizes to nothing, or no URL survives
                       validation. Raised before any storage is touched.
    - NotFound       : no unused link exists for the key right now.
    - StorageFailure : an I/O or query error. Any transaction in flight has
                       already been rolled back when this is raised.

The classes also subclass the closest builtin (ValueError, LookupError,
RuntimeError) so callers that only know the builtins still catch them.
"""

__all__ = ["LinkDispenserError", "InvalidInput", "NotFound", "StorageFailure"]


class LinkDispenserError(Exception):
    """Base class for every error raised by the link_dispenser package."""


class InvalidInput(LinkDispenserError, ValueError):
    """Caller input is unusable (bad key or no valid URLs)."""


class NotFound(LinkDispenserError, LookupError):
    """No unused link is available for the requested key."""

    def __init__(self, valor: int):
        super().__init__(f"No hay links disponibles para el valor {valor}")
        self.valor = valor


class StorageFailure(LinkDispenserError, RuntimeError):
    """Underlying storage raised; nothing was left half-applied."""
