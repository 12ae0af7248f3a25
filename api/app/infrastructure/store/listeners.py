"""
Registro de consultas en vivo compartido por los backends del store.
"""
import asyncio
import inspect
from dataclasses import dataclass, field
from itertools import count
from typing import Awaitable, Callable, Dict, List, Optional

from loguru import logger

from app.domain.repositories.document_store import (
    DocumentSnapshot,
    SnapshotCallback,
    StoreQuery,
    Unsubscribe,
)


QueryRunner = Callable[[StoreQuery], Awaitable[List[DocumentSnapshot]]]


@dataclass
class _Listener:
    query: StoreQuery
    callback: SnapshotCallback
    active: bool = True
    pending: int = 0
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    worker: Optional[asyncio.Task] = None


def _stop(listener: _Listener) -> None:
    listener.active = False
    worker = listener.worker
    if worker is None or worker.done():
        return
    try:
        current = asyncio.current_task()
    except RuntimeError:
        current = None
    # Desde su propio callback el worker termina solo al ver active=False
    if worker is not current:
        worker.cancel()


class SnapshotListenerRegistry:
    """
    Mantiene los listeners activos y les entrega snapshots completos.

    Cada escritura vuelve a ejecutar la consulta del listener (no hay diffs
    incrementales) y encola el resultado. Un worker por listener invoca el
    callback en orden, fuera de la escritura: un suscriptor lento no retrasa
    a quien escribe.
    """

    def __init__(self, runner: QueryRunner):
        self._runner = runner
        self._listeners: Dict[int, _Listener] = {}
        self._ids = count(1)

    async def subscribe(self, query: StoreQuery, callback: SnapshotCallback) -> Unsubscribe:
        """
        Registra el listener y entrega el snapshot inicial antes de retornar.

        Si la entrega inicial falla el listener se retira y el error se
        propaga.
        """
        listener_id = next(self._ids)
        listener = _Listener(query=query, callback=callback)
        self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)
            _stop(listener)

        try:
            await self.deliver(callback, await self._runner(query))
        except BaseException:
            unsubscribe()
            raise

        if listener.active:
            listener.worker = asyncio.create_task(self._pump(listener))
        return unsubscribe

    @staticmethod
    async def deliver(callback: SnapshotCallback, docs: List[DocumentSnapshot]) -> None:
        """Invoca el callback, esperando si es una corrutina."""
        result = callback(docs)
        if inspect.isawaitable(result):
            await result

    async def _pump(self, listener: _Listener) -> None:
        while listener.active:
            docs = await listener.queue.get()
            try:
                if listener.active:
                    await self.deliver(listener.callback, docs)
            except Exception as e:
                logger.warning(f"Error en callback de '{listener.query.collection}': {e}")
            finally:
                listener.pending -= 1

    async def notify(self, collection: str) -> None:
        """Encola el snapshot actual para cada listener de la coleccion."""
        for listener in list(self._listeners.values()):
            if not listener.active or listener.query.collection != collection:
                continue
            try:
                docs = await self._runner(listener.query)
            except Exception as e:
                logger.warning(f"Error notificando listener de '{collection}': {e}")
                continue
            # Puede haberse cancelado mientras se ejecutaba la consulta
            if listener.active:
                listener.pending += 1
                listener.queue.put_nowait(docs)

    async def drain(self) -> None:
        """Espera a que todos los snapshots encolados se hayan entregado."""
        while any(item.active and item.pending for item in self._listeners.values()):
            await asyncio.sleep(0)

    def clear(self) -> int:
        """Cancela todos los listeners. Retorna cuantos habia."""
        closed = len(self._listeners)
        for listener in self._listeners.values():
            _stop(listener)
        self._listeners.clear()
        return closed

    def __len__(self) -> int:
        return len(self._listeners)
