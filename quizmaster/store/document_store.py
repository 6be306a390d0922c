import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from quizmaster.core.error import QuizDomainError

logger = logging.getLogger(__name__)


def join_path(*parts: str) -> str:
    return "/".join(part.strip("/") for part in parts if part)


def parent_path(path: str) -> str:
    return path.rpartition("/")[0]


def document_id(path: str) -> str:
    return path.rpartition("/")[2]


@dataclass(frozen=True)
class DocumentSnapshot:
    path: str
    data: dict[str, Any] | None = None

    @property
    def id(self) -> str:
        return document_id(self.path)

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data or {})


@dataclass(frozen=True)
class QuerySpec:
    collection_path: str
    order_by: str | None = None
    limit: int | None = None

    def apply(self, documents: list[DocumentSnapshot]) -> list[DocumentSnapshot]:
        """Sort by ``order_by`` keeping insertion order for ties, then cut."""
        ordered = documents
        if self.order_by is not None:
            key = self.order_by
            ordered = sorted(
                documents,
                key=lambda doc: (
                    doc.to_dict().get(key) is None,
                    doc.to_dict().get(key) or 0,
                ),
            )
        if self.limit is not None:
            ordered = ordered[: self.limit]
        return ordered


@dataclass(frozen=True)
class QuerySnapshot:
    spec: QuerySpec
    documents: list[DocumentSnapshot] = field(default_factory=list)

    def __iter__(self) -> Iterator[DocumentSnapshot]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)


SnapshotCallback = Callable[[Any], Awaitable[None]]
ErrorCallback = Callable[[QuizDomainError], Awaitable[None]]


class Subscription:
    """A live listener on one document or one query.

    Snapshots are queued and handed to the callback one at a time, so a
    single subscription always observes commits in order. Separate
    subscriptions run on separate tasks and may interleave freely.
    """

    def __init__(
        self,
        target: str | QuerySpec,
        callback: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.target = target
        self.active = True
        self._callback = callback
        self._on_error = on_error
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._idle = asyncio.Event()
        self._idle.set()
        self._on_unsubscribe: Callable[["Subscription"], None] | None = None
        self._task = asyncio.create_task(self._run())

    def describe(self) -> str:
        if isinstance(self.target, QuerySpec):
            return f"query:{self.target.collection_path}"
        return f"document:{self.target}"

    def deliver(self, item: Any) -> None:
        if not self.active:
            return
        self._idle.clear()
        self._queue.put_nowait(item)

    async def wait_idle(self) -> None:
        await self._idle.wait()

    @property
    def busy(self) -> bool:
        return not self._idle.is_set()

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._on_unsubscribe is not None:
            self._on_unsubscribe(self)
        if asyncio.current_task() is not self._task:
            self._task.cancel()
        # A task cancelled before its first step never reaches its finally.
        while not self._queue.empty():
            self._queue.get_nowait()
        self._idle.set()

    async def _run(self) -> None:
        try:
            while self.active:
                item = await self._queue.get()
                try:
                    if isinstance(item, QuizDomainError):
                        if self._on_error is not None:
                            await self._on_error(item)
                        else:
                            logger.error(
                                "Subscription %s failed: %s", self.describe(), item
                            )
                    else:
                        await self._callback(item)
                except Exception:
                    logger.exception("Snapshot listener for %s raised", self.describe())
                if self._queue.empty():
                    self._idle.set()
        finally:
            self._idle.set()


class SubscriptionHub:
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def add(self, subscription: Subscription) -> None:
        subscription._on_unsubscribe = self.remove
        self._subscriptions.append(subscription)

    def remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def matching(self, path: str, *, recursive: bool = False) -> list[Subscription]:
        prefix = f"{path}/"
        collection = parent_path(path)
        matched = []
        for subscription in self._subscriptions:
            target = subscription.target
            if isinstance(target, QuerySpec):
                hit = target.collection_path == collection or (
                    recursive and target.collection_path.startswith(prefix)
                )
            else:
                hit = target == path or (recursive and target.startswith(prefix))
            if hit:
                matched.append(subscription)
        return matched

    async def drain(self) -> None:
        while True:
            pending = [s for s in self._subscriptions if s.busy]
            if not pending:
                return
            await asyncio.gather(*(s.wait_idle() for s in pending))

    def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()


class DocumentStore(ABC):
    """Document database with collections, subcollections and live snapshots.

    Paths alternate collection and document ids, e.g.
    ``quizRooms/ABC123/players/<participant>``.
    """

    def __init__(self) -> None:
        self._hub = SubscriptionHub()
        self._notify_lock = asyncio.Lock()

    @abstractmethod
    async def get(self, path: str) -> DocumentSnapshot: ...

    @abstractmethod
    async def set(self, path: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    async def update(self, path: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    async def delete(self, path: str, *, recursive: bool = False) -> None: ...

    @abstractmethod
    async def add(self, collection_path: str, data: dict[str, Any]) -> str: ...

    @abstractmethod
    async def query(
        self,
        collection_path: str,
        *,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> QuerySnapshot: ...

    async def subscribe_document(
        self,
        path: str,
        callback: SnapshotCallback,
        *,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        subscription = Subscription(path, callback, on_error)
        self._hub.add(subscription)
        await self._refresh(subscription)
        return subscription

    async def subscribe_query(
        self,
        collection_path: str,
        callback: SnapshotCallback,
        *,
        order_by: str | None = None,
        limit: int | None = None,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        spec = QuerySpec(collection_path, order_by=order_by, limit=limit)
        subscription = Subscription(spec, callback, on_error)
        self._hub.add(subscription)
        await self._refresh(subscription)
        return subscription

    async def drain(self) -> None:
        await self._hub.drain()

    async def close(self) -> None:
        self._hub.close()

    async def _refresh(self, subscription: Subscription) -> None:
        target = subscription.target
        try:
            if isinstance(target, QuerySpec):
                snapshot: Any = await self.query(
                    target.collection_path,
                    order_by=target.order_by,
                    limit=target.limit,
                )
            else:
                snapshot = await self.get(target)
        except QuizDomainError as exc:
            logger.warning("Snapshot for %s failed: %s", subscription.describe(), exc)
            subscription.deliver(exc)
            return
        subscription.deliver(snapshot)

    async def _notify(self, path: str, *, recursive: bool = False) -> None:
        async with self._notify_lock:
            for subscription in self._hub.matching(path, recursive=recursive):
                await self._refresh(subscription)
