"""Shared deployment event streams.

Deployment pipelines are async generators. Every pipeline is wrapped in
a :py:class:`DeploymentStream`:

- The pipeline runs exactly once, in its own task, started by the first subscriber

- Every event is recorded and replayed to later subscribers

- An error is recorded as well and raised to every subscriber

- When the last subscriber leaves before the pipeline is done, the pipeline is cancelled.
  A cancelled pipeline raises :py:class:`lsp_factory.errors.DeploymentCancelled` to its subscribers.

This way a pipeline that several other pipelines depend on never
broadcasts its transactions twice.

We also provide :py:func:`join` and :py:func:`merge` to wait on multiple
inputs and to interleave multiple pipelines into one stream.
"""

import asyncio
import inspect
import logging
from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable

from eth_typing import HexAddress

from lsp_factory.constants import ContractRole
from lsp_factory.errors import DeploymentCancelled
from lsp_factory.events import DeploymentEvent, DeploymentStatus

logger = logging.getLogger(__name__)


class DeploymentStream:
    """Memoised, replaying stream of deployment events.

    Example:

    .. code-block:: python

        stream = account_deployment(factory, provider, signer_address)

        async for event in stream:
            print(event)

        # Replayed from memory, no new transactions
        events = await stream.collect()
    """

    def __init__(
        self,
        producer: Callable[[], AsyncIterator[DeploymentEvent]],
        name: str,
        role: ContractRole | None = None,
    ):
        """
        :param producer:
            Async generator function running the pipeline.

        :param name:
            Used in logging and task names.

        :param role:
            Contract this pipeline deploys, ``None`` for composite streams.
        """
        self.producer = producer
        self.name = name
        self.role = role

        #: Address reused instead of deploying, set by the pipeline
        self.fallback_address: HexAddress | None = None

        self.events: list[DeploymentEvent] = []
        self.error: BaseException | None = None
        self.done = False

        #: Subscriptions currently iterating this stream
        self.subscribers = 0

        self._task: asyncio.Task | None = None
        self._updated = asyncio.Event()

    def __repr__(self):
        return f"<DeploymentStream {self.name} events:{len(self.events)} done:{self.done} error:{self.error!r}>"

    def __aiter__(self) -> AsyncIterator[DeploymentEvent]:
        return self._subscribe()

    @property
    def started(self) -> bool:
        """Has any subscriber triggered the pipeline."""
        return self._task is not None

    def start(self):
        """Launch the pipeline task if not running yet.

        Must be called within a running event loop.
        """
        if self._task is None:
            loop = asyncio.get_running_loop()
            logger.debug("Starting pipeline %s", self.name)
            self._task = loop.create_task(self._run(), name=f"deployment-{self.name}")
            self._task.add_done_callback(self._task_done)

    def cancel(self):
        """Abandon the remaining stages of the pipeline.

        Already broadcasted transactions will still be mined.
        """
        if self._task is not None and not self._task.done():
            logger.info("Cancelling pipeline %s after %d events", self.name, len(self.events))
            self._task.cancel()

    async def _run(self):
        try:
            async for event in self.producer():
                self.events.append(event)
                self._wake()
        except asyncio.CancelledError:
            self.error = DeploymentCancelled(self.name, self.role, len(self.events))
            raise
        except Exception as e:
            logger.info("Pipeline %s failed: %s", self.name, e)
            self.error = e
        finally:
            self.done = True
            self._wake()

    def _task_done(self, task: asyncio.Task):
        if not self.done:
            # Cancelled before the pipeline got to run
            self.error = DeploymentCancelled(self.name, self.role, len(self.events))
            self.done = True
            self._wake()

    def _wake(self):
        # Swap the event so that waiters see exactly one wake up per change
        updated = self._updated
        self._updated = asyncio.Event()
        updated.set()

    async def _subscribe(self, track=True) -> AsyncIterator[DeploymentEvent]:
        """Replay and follow the events.

        :param track:
            Count as a subscriber keeping the pipeline alive.
        """
        if track:
            self.subscribers += 1
        try:
            self.start()
            index = 0
            while True:
                if index < len(self.events):
                    yield self.events[index]
                    index += 1
                    continue

                if self.done:
                    if self.error is not None:
                        raise self.error
                    return

                await self._updated.wait()
        finally:
            if track:
                self.subscribers -= 1
                if self.subscribers == 0 and not self.done:
                    logger.info("All subscribers left pipeline %s", self.name)
                    self.cancel()

    async def collect(self) -> list[DeploymentEvent]:
        """Wait the pipeline to finish and return all of its events."""
        return [event async for event in self]

    async def first(self) -> DeploymentEvent | None:
        """Wait for the first event.

        Peeking does not keep the pipeline alive, nor does it cancel it.

        :return:
            The first event or ``None`` if the pipeline completed without emitting anything.
        """
        subscription = self._subscribe(track=False)
        try:
            async for event in subscription:
                return event
            return None
        finally:
            await subscription.aclose()

    async def confirmed_deployment(self) -> DeploymentEvent | None:
        """Wait the pipeline to finish and return the confirmed contract creation event.

        :return:
            ``None`` if the pipeline skipped the deployment.
        """
        events = await self.collect()
        for event in events:
            if event.is_deployment() and event.status == DeploymentStatus.complete:
                return event
        return None

    async def resolve_address(self) -> HexAddress | None:
        """Wait the pipeline to finish and get the address of the contract.

        :return:
            Deployed address, or the reused address when the pipeline skipped the deployment.
        """
        event = await self.confirmed_deployment()
        if event is not None:
            return event.address
        return self.fallback_address


async def resolve(value: Any) -> Any:
    """Get a value that may be given either directly or as something awaitable.

    Futures and tasks are shielded, so that one waiter being cancelled
    does not cancel the value for others.
    """
    if isinstance(value, asyncio.Future):
        return await asyncio.shield(value)
    if inspect.isawaitable(value):
        return await value
    return value


def share(value: Any) -> Any:
    """Make an awaitable input safe to be awaited by several pipelines.

    Coroutines can be awaited only once, so they are wrapped in a task.
    Plain values are returned as is.
    """
    if inspect.iscoroutine(value):
        return asyncio.ensure_future(value)
    return value


async def join(*awaitables: Awaitable) -> list:
    """Wait for all inputs before continuing.

    If any input fails, the rest are cancelled and the error is raised.
    """
    tasks = [asyncio.ensure_future(resolve(a)) for a in awaitables]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


async def merge(*streams: AsyncIterable) -> AsyncIterator:
    """Interleave multiple streams in the order their items arrive.

    The order within each stream is preserved.

    - The first error from any stream is raised and the remaining subscriptions are dropped

    - Completes when all streams have completed
    """
    queue: asyncio.Queue = asyncio.Queue()
    finished = object()

    async def _pump(stream: AsyncIterable):
        try:
            async for item in stream:
                queue.put_nowait((item, None))
            queue.put_nowait((finished, None))
        except Exception as e:
            queue.put_nowait((finished, e))

    tasks = [asyncio.ensure_future(_pump(s)) for s in streams]
    remaining = len(tasks)
    try:
        while remaining:
            item, error = await queue.get()
            if error is not None:
                raise error
            if item is finished:
                remaining -= 1
                continue
            yield item
    finally:
        for task in tasks:
            task.cancel()
