"""
Data-access and gateway interfaces (abstractions).
Using Protocol for structural subtyping (duck typing with type hints).
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Protocol, TypeVar, runtime_checkable

from lms.models.schemas import Document, Page

D = TypeVar("D", bound=Document)

Predicate = Callable[[Any], bool]


@runtime_checkable
class Collection(Protocol[D]):
    """
    A schema-defined document collection.
    Production: document database adapter.
    Testing: in-memory implementation.
    """

    async def find(
        self,
        where: Optional[Predicate] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[D]:
        """
        Query documents.

        Args:
            where: Predicate a document must satisfy
            sort: Field name, prefixed with '-' for descending
            page: 1-based page number
            limit: Page size, 0 for no limit
        """
        ...

    async def find_one(self, where: Predicate) -> Optional[D]:
        ...

    async def find_by_id(self, doc_id: str) -> Optional[D]:
        ...

    async def create(self, doc: D) -> D:
        ...

    async def update(self, doc_id: str, **changes: Any) -> D:
        """Apply field changes and stamp updated_at. Raises NotFoundError."""
        ...

    async def delete(self, doc_id: str) -> bool:
        ...

    async def count(self, where: Optional[Predicate] = None) -> int:
        ...


class PaymentGateway(ABC):
    """
    Abstract payment processor client.
    Each call receives the secret key of the tenant's processor account.
    """

    @abstractmethod
    async def create_checkout_session(
        self, secret_key: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create a hosted checkout session. Returns at least id and url."""
        pass

    @abstractmethod
    async def create_payment_intent(
        self, secret_key: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create a payment intent. Returns id, client_secret, amount, currency, status."""
        pass

    @abstractmethod
    async def update_subscription(
        self, secret_key: str, subscription_id: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Modify a subscription (e.g. cancel_at_period_end)."""
        pass

    @abstractmethod
    def construct_event(
        self, payload: bytes, signature: str, webhook_secret: str
    ) -> Dict[str, Any]:
        """Verify a webhook signature and parse the event. Raises ValueError on bad signature."""
        pass
