from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, Optional

from errors import AuthenticationFailed, CapabilityBusy
from observability import build_log_context, log_event

from .base import KeyPairHandle, KeyStore

BUSY_QUEUE = "queue"
BUSY_FAIL = "fail"

# Slot for authentication prompts not tied to a key.
_AUTH_SLOT = "__authenticate__"

CTX = build_log_context(component="serialized_keystore")


@dataclass
class _Slot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class SerializedKeyStore(KeyStore):
    """
    Wrap a key store so at most one gated operation runs per key at a time.

    With busy_policy="queue" a second caller waits for the first to finish;
    with "fail" it gets CapabilityBusy immediately. Each operation is bounded by
    `timeout` and an optional cancellation event. Either one firing cancels the
    inner call and raises AuthenticationFailed.

    A slot stays busy until the inner operation has actually settled, not just
    until the caller gave up on it. Slots are tracked per event loop and
    dropped once nobody holds or waits on them.
    """

    def __init__(
        self,
        inner: KeyStore,
        *,
        timeout: Optional[float] = None,
        busy_policy: str = BUSY_QUEUE,
    ) -> None:
        if busy_policy not in (BUSY_QUEUE, BUSY_FAIL):
            raise ValueError(f"Unsupported busy policy: {busy_policy}")
        self._inner = inner
        self._timeout = timeout
        self._busy_policy = busy_policy
        self._slots: Dict[asyncio.AbstractEventLoop, Dict[str, _Slot]] = {}

    @property
    def inner(self) -> KeyStore:
        return self._inner

    def busy(self, key_id: str) -> bool:
        slots = self._slots.get(asyncio.get_running_loop(), {})
        state = slots.get(key_id)
        return state is not None and state.lock.locked()

    def _enter(self, key_id: str) -> _Slot:
        slots = self._slots.setdefault(asyncio.get_running_loop(), {})
        state = slots.get(key_id)
        if state is None:
            state = slots[key_id] = _Slot()
        state.users += 1
        return state

    def _leave(self, loop: asyncio.AbstractEventLoop, key_id: str, state: _Slot) -> None:
        state.users -= 1
        if state.users:
            return
        slots = self._slots.get(loop, {})
        if slots.get(key_id) is state:
            del slots[key_id]
        if not slots:
            self._slots.pop(loop, None)

    async def _run(
        self,
        slot: str,
        op: str,
        awaitable: Awaitable[Any],
        *,
        cancel: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        if self._busy_policy == BUSY_FAIL and self.busy(slot):
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise CapabilityBusy(f"{op} already in progress for key {slot}", {"key_id": slot, "op": op})

        loop = asyncio.get_running_loop()
        state = self._enter(slot)
        try:
            await state.lock.acquire()
        except BaseException:
            self._leave(loop, slot, state)
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise

        def _settled(t: asyncio.Future) -> None:
            if not t.cancelled():
                t.exception()
            state.lock.release()
            self._leave(loop, slot, state)

        # The slot is released by the task itself, never by the caller.
        task = asyncio.ensure_future(awaitable)
        task.add_done_callback(_settled)

        waiters = {task}
        cancel_waiter = None
        if cancel is not None:
            cancel_waiter = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_waiter)
        limit = timeout if timeout is not None else self._timeout
        try:
            done, _ = await asyncio.wait(waiters, timeout=limit, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        why = "cancelled" if cancel_waiter is not None and cancel_waiter in done else "timed out"
        log_event("keystore_op_aborted", ctx=CTX, data={"op": op, "key_id": slot, "why": why})
        raise AuthenticationFailed(f"{op} {why} awaiting authentication", {"key_id": slot, "op": op})

    async def generate_key_pair(
        self, key_id: str, *, cancel: Optional[asyncio.Event] = None, timeout: Optional[float] = None
    ) -> KeyPairHandle:
        return await self._run(
            key_id, "generate_key_pair", self._inner.generate_key_pair(key_id), cancel=cancel, timeout=timeout
        )

    async def lookup(self, key_id: str) -> KeyPairHandle:
        return await self._inner.lookup(key_id)

    async def public_key(self, handle: KeyPairHandle) -> bytes:
        return await self._run(handle.key_id, "public_key", self._inner.public_key(handle))

    async def sign(
        self,
        handle: KeyPairHandle,
        digest: bytes,
        *,
        cancel: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        return await self._run(handle.key_id, "sign", self._inner.sign(handle, digest), cancel=cancel, timeout=timeout)

    async def authenticate(
        self,
        reason: str,
        *,
        key_id: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Runs on the key's own slot when key_id is given, so it queues with sign and generate."""
        slot = key_id if key_id is not None else _AUTH_SLOT
        await self._run(slot, "authenticate", self._inner.authenticate(reason), cancel=cancel, timeout=timeout)


def ensure_serialized(key_store: KeyStore, *, timeout: Optional[float] = None, busy_policy: str = BUSY_QUEUE) -> SerializedKeyStore:
    """
    Wrap key_store unless it is already serialized.
    """
    if isinstance(key_store, SerializedKeyStore):
        return key_store
    return SerializedKeyStore(key_store, timeout=timeout, busy_policy=busy_policy)
