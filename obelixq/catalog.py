"""Read-only collaborators: business, service and user lookups.

The ledger only needs ``find_business``, ``find_service`` and ``find_user``
(see ``CatalogLookup``). ``InMemoryCatalog`` is the in-process implementation,
seeded from a JSON file.
"""
import json
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from pydantic import BaseModel, Field

from obelixq.logging_config import get_logger
from obelixq.models import Business, Service, User

logger = get_logger(__name__)


class CatalogLookup(Protocol):
    """Lookups the ledger consumes. Each returns None when absent."""

    def find_business(self, business_id: str) -> Optional[Business]: ...

    def find_service(self, service_id: str) -> Optional[Service]: ...

    def find_user(self, user_id: str) -> Optional[User]: ...


class CatalogSeed(BaseModel):
    """Schema of the JSON seed file."""
    businesses: List[Business] = Field(default_factory=list)
    services: List[Service] = Field(default_factory=list)
    users: List[User] = Field(default_factory=list)


class InMemoryCatalog:
    """Thread-safe in-memory store of businesses, services and users."""

    def __init__(self):
        self._businesses: Dict[str, Business] = {}
        self._services: Dict[str, Service] = {}
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    # Lookups
    def find_business(self, business_id: str) -> Optional[Business]:
        with self._lock:
            return self._businesses.get(business_id)

    def find_service(self, service_id: str) -> Optional[Service]:
        with self._lock:
            return self._services.get(service_id)

    def find_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    # Listing
    def list_businesses(self, active_only: bool = True) -> List[Business]:
        with self._lock:
            businesses = list(self._businesses.values())
        if active_only:
            businesses = [b for b in businesses if b.is_active]
        return sorted(businesses, key=lambda b: b.name)

    def list_services(self, business_id: str, active_only: bool = True) -> List[Service]:
        with self._lock:
            services = [s for s in self._services.values() if s.business_id == business_id]
        if active_only:
            services = [s for s in services if s.is_active]
        return sorted(services, key=lambda s: s.name)

    # Mutation (owned by whoever manages the catalog, never the ledger)
    def add_business(self, business: Business) -> None:
        with self._lock:
            self._businesses[business.id] = business

    def add_service(self, service: Service) -> None:
        with self._lock:
            self._services[service.id] = service

    def add_user(self, user: User) -> None:
        with self._lock:
            self._users[user.id] = user

    def remove_business(self, business_id: str) -> None:
        with self._lock:
            self._businesses.pop(business_id, None)

    def remove_service(self, service_id: str) -> None:
        with self._lock:
            self._services.pop(service_id, None)

    def remove_user(self, user_id: str) -> None:
        with self._lock:
            self._users.pop(user_id, None)

    @classmethod
    def from_seed(cls, seed: CatalogSeed) -> "InMemoryCatalog":
        catalog = cls()
        for business in seed.businesses:
            catalog.add_business(business)
        for service in seed.services:
            catalog.add_service(service)
        for user in seed.users:
            catalog.add_user(user)
        return catalog


def load_catalog(path: Union[str, Path]) -> InMemoryCatalog:
    """
    Load a catalog from a JSON seed file.

    Args:
        path: Path to a file with "businesses", "services" and "users" arrays

    Returns:
        Populated InMemoryCatalog

    Raises:
        FileNotFoundError: If the file doesn't exist
        pydantic.ValidationError: If the content doesn't match CatalogSeed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog seed file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    seed = CatalogSeed(**data)
    logger.info(
        "catalog_loaded",
        path=str(path),
        businesses=len(seed.businesses),
        services=len(seed.services),
        users=len(seed.users),
    )
    return InMemoryCatalog.from_seed(seed)
