"""Error types shared across the catalog."""


class CatalogError(Exception):
    """Base class for catalog errors."""


class NotFoundError(CatalogError):
    """A single-entity lookup matched no row (or more than one)."""

    def __init__(self, collection: str, field: str, value) -> None:
        self.collection = collection
        self.field = field
        self.value = value
        super().__init__(f"No {collection} row with {field}={value!r}")


class FetchError(CatalogError):
    """Reading from the data store failed; the same call can be retried."""
