"""Library exceptions for the docmigrate package."""


class DocMigrateError(Exception):
    """Base exception for docmigrate library."""

    pass


class StoreError(DocMigrateError):
    """Raised when the document store reports an error."""

    pass


class ViewNotFoundError(StoreError):
    """Raised when a view is queried that the store does not define."""

    def __init__(self, collection: str, design: str, view: str) -> None:
        self.collection = collection
        self.design = design
        self.view = view
        super().__init__(f"View {design}/{view} not found in collection '{collection}'")


class ConfigError(DocMigrateError):
    """
    Raised for invalid configuration or migration-unit input.

    This error occurs when:
    - The migration folder does not exist or cannot be listed
    - Neither the migration unit nor the settings name a target collection
    - A migration unit file cannot be imported or lacks a transform function
    - A setting has an invalid value (e.g. a batch size below 1)

    Configuration errors are detected before any document is touched.
    """

    pass
