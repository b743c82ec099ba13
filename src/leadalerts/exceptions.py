"""Application-level exceptions that have no Protean counterpart.

Domain validation still raises ``protean.exceptions.ValidationError`` and
lookups raise ``ObjectNotFoundError``; these two cover the ingestion
boundary only.
"""


class InvalidApiKeyError(Exception):
    """The credential presented with an inbound lead does not match the tenant's."""

    def __init__(self, tenant_id: str) -> None:
        super().__init__(f"Invalid API key for tenant {tenant_id}")
        self.tenant_id = tenant_id


class StorageUnavailableError(Exception):
    """The document store could not be reached while handling a request."""
