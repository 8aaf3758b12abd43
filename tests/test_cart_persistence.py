from __future__ import annotations

from dataclasses import dataclass, field

import pytest
import redis

from stampshop.integrations import cart_persistence as cart_persistence_module
from stampshop.integrations.cart_persistence import JsonFileCartPersistence, RedisCartPersistence
from stampshop.services.cart_store import CartStore


@dataclass
class FakeRedisClient:
    data: dict[str, str] = field(default_factory=dict)
    expiry: dict[str, int] = field(default_factory=dict)
    fail: bool = False

    def ping(self) -> bool:
        return True

    def get(self, key: str):
        if self.fail:
            raise redis.ConnectionError("connection lost")
        return self.data.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        if self.fail:
            raise redis.ConnectionError("connection lost")
        self.data[key] = value
        self.expiry[key] = ttl
        return True


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedisClient()
    monkeypatch.setattr(cart_persistence_module.redis, "from_url", lambda *args, **kwargs: client)
    return client


def test_redis_cart_is_shared_between_instances(fake_redis) -> None:
    store_a = CartStore(RedisCartPersistence(redis_url="redis://fake"))
    store_a.add({"id": 1, "name": "Sello", "price": 100}, 2)

    store_b = CartStore(RedisCartPersistence(redis_url="redis://fake"))

    assert store_b.count == 2
    assert "cart:cart_v1" in fake_redis.data
    assert fake_redis.expiry["cart:cart_v1"] == 24 * 60 * 60


def test_redis_without_url_uses_memory(monkeypatch) -> None:
    monkeypatch.delenv("REDIS_URL", raising=False)
    persistence = RedisCartPersistence()

    persistence.save("k", "[]")

    assert persistence.uses_memory
    assert persistence.load("k") == "[]"


def test_redis_unreachable_at_startup_falls_back(monkeypatch) -> None:
    def _from_url(*args, **kwargs):
        raise redis.ConnectionError("refused")

    monkeypatch.setattr(cart_persistence_module.redis, "from_url", _from_url)
    persistence = RedisCartPersistence(redis_url="redis://fake")

    assert persistence.uses_memory


def test_redis_error_switches_to_memory(fake_redis) -> None:
    persistence = RedisCartPersistence(redis_url="redis://fake")
    fake_redis.fail = True

    persistence.save("k", "[1]")

    assert persistence.uses_memory
    assert persistence.load("k") == "[1]"


def test_json_file_persistence_round_trip(tmp_path) -> None:
    persistence = JsonFileCartPersistence(tmp_path / "carts")
    assert persistence.load("cart_v1") is None

    persistence.save("cart_v1", '[{"id": 1}]')
    persistence.save("cart_v1", "[]")

    assert persistence.load("cart_v1") == "[]"
    assert [p.name for p in (tmp_path / "carts").iterdir()] == ["cart_v1.json"]


def test_json_file_key_cannot_escape_directory(tmp_path) -> None:
    persistence = JsonFileCartPersistence(tmp_path / "carts")
    persistence.save("../outside", "[]")

    assert not (tmp_path / "outside.json").exists()
    assert persistence.load("../outside") == "[]"
