import copy
import itertools
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest

from pricectl.core.stack import Stack
from pricectl.provisioners.identity import LEGACY_ID_TAG, ID_TAG, build_tag_query
from pricectl.state.manager import StateManager
from pricectl.utils.errors import RemoteNotFoundError

ID_PREFIXES = {
    "products": "prod",
    "prices": "price",
    "coupons": "coupon",
    "features": "feat",
    "meters": "mtr",
}


class FakeStripeService:
    """In-memory stand-in for one StripeService."""

    def __init__(self, name: str):
        self.name = name
        self.objects: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)

    def add(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        self.objects[obj["id"]] = copy.deepcopy(obj)
        return obj

    def create(self, params: Dict[str, Any]) -> Dict[str, Any]:
        obj = copy.deepcopy(params)
        if "id" not in obj:
            obj["id"] = self._next_id()
        if self.name in ("prices", "features"):
            obj.setdefault("active", True)
        if self.name == "meters":
            obj.setdefault("status", "active")
        self.objects[obj["id"]] = obj
        return copy.deepcopy(obj)

    def _next_id(self) -> str:
        while True:
            object_id = f"{ID_PREFIXES[self.name]}_{next(self._ids)}"
            if object_id not in self.objects:
                return object_id

    def retrieve(self, object_id: str) -> Dict[str, Any]:
        if object_id not in self.objects:
            raise RemoteNotFoundError(f"No such {self.name[:-1]}: '{object_id}'")
        return copy.deepcopy(self.objects[object_id])

    def update(self, object_id: str, params: Dict[str, Any]) -> Dict[str, Any]:
        obj = self.objects[object_id]
        obj.update(copy.deepcopy(params))
        return copy.deepcopy(obj)

    def delete(self, object_id: str) -> Dict[str, Any]:
        self.objects.pop(object_id)
        return {"id": object_id, "deleted": True}

    def deactivate(self, object_id: str) -> Dict[str, Any]:
        return self.update(object_id, {"status": "inactive"})

    def search(self, query: str, limit: int = 1) -> List[Dict[str, Any]]:
        matches = []
        for obj in self.objects.values():
            metadata = obj.get("metadata") or {}
            tag = metadata.get(ID_TAG) or metadata.get(LEGACY_ID_TAG)
            if tag is not None and build_tag_query(tag) == query:
                matches.append(copy.deepcopy(obj))
        return matches[:limit]

    def list(self, limit: int = 100) -> List[Dict[str, Any]]:
        return [copy.deepcopy(obj) for obj in list(self.objects.values())[:limit]]


class FakeStripeClient:
    """Client with one recording fake service per resource kind."""

    def __init__(self):
        self.fakes = {name: FakeStripeService(name) for name in ID_PREFIXES}
        for name, fake in self.fakes.items():
            setattr(self, name, MagicMock(wraps=fake))

    def objects(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self.fakes[name].objects


@pytest.fixture
def client() -> FakeStripeClient:
    return FakeStripeClient()


@pytest.fixture
def state_manager(tmp_path) -> StateManager:
    return StateManager(tmp_path)


@pytest.fixture
def stack() -> Stack:
    return Stack(None, "Billing", api_key="sk_test_123")
