"""
Общие фикстуры тестов: подменные источник энтропии, клиент OpenRouter и Redis
"""
import asyncio
import json
import random
from typing import Dict, List, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core.exceptions import NetworkException, RandomSourceFailure
from core.random_source import RandomSource
from core.redis_store import RedisStore
from core.utils import run_cancellable
from modules.iching.openrouter_service import IChingOpenRouterService
from modules.iching.repository import IChingReadingRepository
from modules.iching.service import IChingService
from modules.iching.session import SessionRegistry

PROMPTS_CONFIG = {
    "concise": {"max_tokens": 1000, "temperature": 0.7},
    "detailed": {"max_tokens": 2000, "temperature": 0.7},
    "comprehensive": {"max_tokens": 3000, "temperature": 0.7},
    "structured_v2": {"max_tokens": 4000, "temperature": 0.7},
}


class ScriptedRandomSource(RandomSource):
    """Отдает заранее заданные числа; пустой сценарий - ошибка источника"""

    def __init__(self, numbers: Optional[List[int]] = None, kind: str = "crypto", fail: bool = False):
        self.numbers = list(numbers or [])
        self.kind = kind
        self.fail = fail
        self.calls: List[int] = []

    async def get_random(self, count: int) -> List[int]:
        self.calls.append(count)
        if self.fail:
            raise RandomSourceFailure("источник недоступен")
        batch, self.numbers = self.numbers[:count], self.numbers[count:]
        return batch


class SeededRandomSource(RandomSource):
    kind = "crypto"

    def __init__(self, seed: int = 42):
        self.rng = random.Random(seed)

    async def get_random(self, count: int) -> List[int]:
        return [self.rng.randrange(1 << 16) for _ in range(count)]


class FakeOpenRouterClient:
    """Клиент с заготовленными ответами. block=True - ответ никогда не приходит."""

    def __init__(self, responses=None, error: Optional[Exception] = None, block: bool = False,
                 model: str = "test/model"):
        self.responses = list(responses or [])
        self.error = error
        self.block = block
        self.model = model
        self.last_model: Optional[str] = None
        self.prompts: List[str] = []
        self.max_tokens: List[int] = []
        self.started = asyncio.Event() if block else None

    async def _respond(self) -> str:
        if self.block:
            self.started.set()
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        self.last_model = self.model
        return self.responses.pop(0) if self.responses else ""

    async def complete(self, prompt: str, max_output_length: int, temperature: float = 0.7,
                       cancel_token=None) -> str:
        self.prompts.append(prompt)
        self.max_tokens.append(max_output_length)
        return await run_cancellable(self._respond(), cancel_token)


class FakeRedis:
    """
    Минимальная асинхронная замена redis.asyncio.Redis в памяти.
    fail(command, error) заставляет следующий вызов команды выбросить ошибку.
    """

    def __init__(self):
        self.values: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}
        self.ttls: Dict[str, int] = {}
        self.commands: List[str] = []
        self.failures: Dict[str, List[Exception]] = {}

    def fail(self, command: str, error: Exception, times: int = 1) -> None:
        self.failures.setdefault(command, []).extend([error] * times)

    def _command(self, name: str) -> None:
        self.commands.append(name)
        pending = self.failures.get(name)
        if pending:
            raise pending.pop(0)

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self)

    async def ping(self):
        self._command("PING")
        return True

    async def get(self, key):
        self._command("GET")
        return self.values.get(key)

    async def set(self, key, value, ex=None):
        self._command("SET")
        self.values[key] = value
        if ex:
            self.ttls[key] = ex
        return True

    async def mget(self, keys):
        self._command("MGET")
        return [self.values.get(k) for k in keys]

    async def delete(self, *keys):
        self._command("DEL")
        removed = 0
        for key in keys:
            if key in self.values or key in self.lists:
                removed += 1
            self.values.pop(key, None)
            self.lists.pop(key, None)
        return removed

    async def lpush(self, key, value):
        self._command("LPUSH")
        self.lists.setdefault(key, []).insert(0, value)
        return len(self.lists[key])

    async def ltrim(self, key, start, stop):
        self._command("LTRIM")
        items = self.lists.get(key, [])
        self.lists[key] = items[start:stop + 1]
        return True

    async def lrange(self, key, start, stop):
        self._command("LRANGE")
        items = self.lists.get(key, [])
        return items[start:] if stop == -1 else items[start:stop + 1]

    async def lrem(self, key, count, value):
        self._command("LREM")
        items = self.lists.get(key, [])
        kept = [item for item in items if item != value]
        self.lists[key] = kept
        return len(items) - len(kept)

    async def expire(self, key, ttl):
        self._command("EXPIRE")
        self.ttls[key] = ttl
        return True


class FakePipeline:
    """
    Транзакция MULTI/EXEC: команды копятся в очереди и применяются при execute().
    Ошибка любой команды отменяет всю транзакцию, как EXECABORT в Redis.
    """

    def __init__(self, redis: FakeRedis):
        self.redis = redis
        self.queued: List[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.queued.clear()

    def _queue(self, method: str, *args, **kwargs) -> "FakePipeline":
        self.queued.append((method, args, kwargs))
        return self

    def set(self, key, value, ex=None):
        return self._queue("set", key, value, ex=ex)

    def delete(self, *keys):
        return self._queue("delete", *keys)

    def lpush(self, key, value):
        return self._queue("lpush", key, value)

    def ltrim(self, key, start, stop):
        return self._queue("ltrim", key, start, stop)

    def lrem(self, key, count, value):
        return self._queue("lrem", key, count, value)

    def expire(self, key, ttl):
        return self._queue("expire", key, ttl)

    async def execute(self):
        self.redis._command("EXEC")
        names = {"set": "SET", "delete": "DEL", "lpush": "LPUSH", "ltrim": "LTRIM", "lrem": "LREM",
                 "expire": "EXPIRE"}
        for method, _, _ in self.queued:
            pending = self.redis.failures.get(names[method])
            if pending:
                raise pending.pop(0)
        return [await getattr(self.redis, method)(*args, **kwargs) for method, args, kwargs in self.queued]


class BrokenRedis(FakeRedis):
    """Redis, у которого обрывается соединение на любой команде"""

    def _command(self, name: str) -> None:
        raise RedisConnectionError("connection refused")


def v2_payload(**overrides) -> dict:
    payload = {
        "title": "The Creative Becoming Receptive",
        "summary": "Strength turns into receptivity as the situation matures.",
        "tone": "Contemplative",
        "overview": (
            "Your question touches on the moment when pure initiative has run its course. "
            "The Creative asks you to recognize where your drive has brought you so far."
        ),
        "presentSituation": "You are acting from strength and momentum.",
        "trigramDynamics": {
            "interaction": "Heaven doubled: relentless movement.",
            "upperMeaning": "Heaven above speaks of vision.",
            "lowerMeaning": "Heaven below speaks of inner resolve.",
        },
        "changingLines": {
            "present": "All six lines are changing.",
            "significance": "Every aspect of the situation is in motion.",
        },
        "transformation": {
            "journey": "From creative force toward receptive devotion.",
            "futureState": "A time of yielding and support.",
        },
        "guidance": {
            "wisdom": "Know when to lead and when to follow.",
            "rightAction": ["Finish what you started"],
            "toEmbody": ["Patience"],
            "toAvoid": ["Forcing outcomes"],
        },
        "timing": {
            "nature": "A turning point.",
            "whenToAct": "Act to complete current work.",
            "whenToWait": "Wait before beginning anything new.",
        },
        "keyInsight": "True strength includes the capacity to receive and to let others lead the way.",
        "reflectionPrompts": [
            "Where am I pushing too hard?",
            "What would receiving look like?",
            "Who could I support right now?",
        ],
        "conclusion": "The Creative completes itself by giving way to the Receptive in due season.",
    }
    payload.update(overrides)
    return payload


def v1_payload(**overrides) -> dict:
    payload = {
        "interpretation": {
            "overview": (
                "The hexagram you received speaks directly to the tension in your question, "
                "pointing at both the strength you have and the limits of force."
            ),
            "present_situation": "You stand at the peak of an effort.",
            "trigram_dynamics": "Heaven over heaven, doubled creative power.",
            "changing_lines": None,
            "transformation": None,
            "guidance": "Persevere without rigidity.",
            "timing": "Now is the time to complete, not to begin.",
            "key_insight": "Strength is most useful when it knows the moment to rest and reflect.",
        },
        "tone": "wise",
        "confidence": "high",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store(fake_redis):
    return RedisStore("redis://test", client=fake_redis)


@pytest.fixture
def repository(store):
    return IChingReadingRepository(store, history_limit=50)


@pytest.fixture
def fake_client():
    return FakeOpenRouterClient(responses=[json.dumps(v2_payload())])


@pytest.fixture
def interpreter(fake_client):
    return IChingOpenRouterService(fake_client, PROMPTS_CONFIG, default_schema="v2")


@pytest.fixture
def all_heads_source():
    return ScriptedRandomSource([0] * 18, kind="quantum")


@pytest.fixture
def service(all_heads_source, interpreter, repository):
    return IChingService(all_heads_source, interpreter, repository, SessionRegistry(ttl_minutes=30))


@pytest.fixture
def client(service, store):
    from fastapi.testclient import TestClient
    from main import app

    app.state.redis_store = store
    app.state.iching_service = service
    return TestClient(app)
