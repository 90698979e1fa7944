"""
Collector runner framework

A runner polls one processor forever on a fixed interval. Every pass fans out
into concurrent units (nothing, one project, one agent pool or one saved
query), buffers the publish callbacks the units produce and finally resets the
processor's gauges and replays the callbacks in one synchronous block, so a
concurrent /metrics scrape never observes a half published generation.

Runner shapes:
- GeneralRunner: a single unit per pass
- ProjectRunner: one unit per project of the current project snapshot
- AgentPoolRunner: one unit per agent pool id of the current snapshot
- QueryRunner: one unit per configured saved query

Processors implement register_metrics() and collect(); everything else
(scheduling, failure isolation, reset/replay, timing) lives here.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from prometheus_client import Counter, Gauge, Summary

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.core.logging_config import ContextLoggerAdapter, get_context_logger, log_with_context
from ado_exporter.domain import Project, QueryRef
from ado_exporter.utils.error_handling import log_and_continue

if TYPE_CHECKING:
    from ado_exporter.core.context import ExporterContext

UnitT = TypeVar("UnitT")

PublishFn = Callable[[], None]
Callback = Callable[[PublishFn], None]

_CLOSE = object()


class RunnerState(Enum):
    UNINITIALIZED = "uninitialized"
    IDLE = "idle"
    COLLECTING = "collecting"
    PUBLISHING = "publishing"


class CollectorProcessor(ABC, Generic[UnitT]):
    """
    Strategy object defining what one runner fetches and how it is labelled.

    Subclasses register their metric families in register_metrics() through
    the gauge()/counter()/summary() helpers and emit publish functions from
    collect() via the callback. Only gauges are cleared by reset(); counters
    and summaries accumulate for the lifetime of the process.
    """

    def __init__(self) -> None:
        self.runner: CollectorRunner | None = None
        self._gauges: list[Gauge] = []

    def setup(self, runner: "CollectorRunner") -> None:
        self.runner = runner
        self.register_metrics()

    @property
    def context(self) -> "ExporterContext":
        if self.runner is None:
            raise RuntimeError(f"{self.__class__.__name__} is not attached to a runner")
        return self.runner.context

    @property
    def client(self):
        return self.context.client

    @property
    def config(self):
        return self.context.config

    @property
    def registry(self):
        return self.context.registry

    def gauge(self, name: str, documentation: str, labels: Sequence[str]) -> Gauge:
        gauge = Gauge(name, documentation, list(labels), registry=self.registry)
        self._gauges.append(gauge)
        return gauge

    def counter(self, name: str, documentation: str, labels: Sequence[str]) -> Counter:
        return Counter(name, documentation, list(labels), registry=self.registry)

    def summary(self, name: str, documentation: str, labels: Sequence[str]) -> Summary:
        return Summary(name, documentation, list(labels), registry=self.registry)

    def reset(self) -> None:
        """Clear every gauge family registered by this processor."""
        for gauge in self._gauges:
            gauge.clear()

    @abstractmethod
    def register_metrics(self) -> None:
        pass

    @abstractmethod
    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, unit: UnitT) -> None:
        """
        Collect one fan-out unit.

        Args:
            logger: Logger bound to the runner and unit
            callback: Receives zero-argument publish functions, replayed after reset
            unit: None, a Project, an agent pool id or a QueryRef depending on the runner

        Raises:
            ADOClientError: Remote failure; the unit contributes nothing this pass
        """
        pass


class CollectorRunner(ABC):
    """
    Independently scheduled polling loop for one processor.

    Attributes:
        name: Collector name used in logs and in the collectorDuration stat
        interval: Time between pass starts
        state: Current RunnerState
        last_collection_start / last_collection_end: Wall clock of the latest pass
        last_scrape_duration: Duration of the latest completed pass
        collection_last_time: Start of the previous pass, lower bound for delta queries
    """

    initial_state = RunnerState.IDLE

    def __init__(self, name: str, processor: CollectorProcessor, interval: timedelta, context: "ExporterContext"):
        self.name = name
        self.processor = processor
        self.interval = interval
        self.context = context
        self.logger = get_context_logger(__name__, collector=name)
        self.state = self.initial_state

        self.last_collection_start: datetime | None = None
        self.last_collection_end: datetime | None = None
        self.last_scrape_duration: timedelta | None = None
        self.collection_last_time: datetime | None = None
        self.passes_skipped = 0

        self._pass_task: asyncio.Task | None = None
        processor.setup(self)

    @abstractmethod
    def fan_out_units(self) -> list[Any] | None:
        """Units of the next pass, None when the pass must be skipped entirely."""
        pass

    def unit_logger(self, unit: Any) -> ContextLoggerAdapter:
        return self.logger

    async def run(self) -> None:
        """
        Run passes forever, one per interval.

        A tick that arrives while the previous pass is still running is
        skipped. An exception escaping a pass ends the loop.
        """
        loop = asyncio.get_running_loop()
        interval = self.interval.total_seconds()
        self.logger.info(f"Starting collector with interval {self.interval}")

        while True:
            tick = loop.time()

            if self._pass_task is not None and self._pass_task.done():
                task, self._pass_task = self._pass_task, None
                task.result()

            if self._pass_task is None:
                self._pass_task = asyncio.create_task(self.collect(), name=f"collect-{self.name}")
            else:
                self.passes_skipped += 1
                self.logger.warning("Previous collection still running, skipping this interval")

            try:
                await asyncio.wait_for(asyncio.shield(self._pass_task), timeout=interval)
                self._pass_task = None
            except TimeoutError:
                pass

            await asyncio.sleep(max(0.0, interval - (loop.time() - tick)))

    async def collect(self) -> None:
        """
        Run exactly one pass.

        Units run concurrently and their callbacks are buffered. Once every
        unit has finished the processor is reset and the callbacks are
        replayed in arrival order without yielding to the event loop.
        """
        units = self.fan_out_units()
        if units is None:
            self.logger.debug("No units known yet, skipping collection")
            return

        self.state = RunnerState.COLLECTING
        self.collection_start()

        queue: asyncio.Queue = asyncio.Queue()
        aggregator = asyncio.create_task(self._aggregate(queue))

        try:
            await asyncio.gather(*(self._collect_unit(queue, unit) for unit in units))
        except BaseException:
            aggregator.cancel()
            self.state = RunnerState.IDLE
            raise

        queue.put_nowait(_CLOSE)
        published = await aggregator
        self.collection_finish(len(units), published)

    async def _collect_unit(self, queue: asyncio.Queue, unit: Any) -> None:
        logger = self.unit_logger(unit)
        buffered: list[PublishFn] = []

        def callback(publish: PublishFn) -> None:
            buffered.append(publish)

        try:
            await self.processor.collect(logger, callback, unit)
        except ADOClientError as e:
            log_and_continue(logger, e, {"collector": self.name, "unit": str(unit)}, f"{self.name} collection")
            return

        for publish in buffered:
            queue.put_nowait(publish)

    async def _aggregate(self, queue: asyncio.Queue) -> int:
        callbacks: list[PublishFn] = []
        while True:
            item = await queue.get()
            if item is _CLOSE:
                break
            callbacks.append(item)

        self.state = RunnerState.PUBLISHING
        self.processor.reset()
        for publish in callbacks:
            publish()
        self.state = RunnerState.IDLE
        return len(callbacks)

    def collection_start(self) -> None:
        now = datetime.now(UTC)
        self.last_collection_start = now
        if self.collection_last_time is None:
            self.collection_last_time = now - self.interval

    def collection_finish(self, units: int, published: int) -> None:
        self.last_collection_end = datetime.now(UTC)
        if self.last_collection_start is not None:
            self.last_scrape_duration = self.last_collection_end - self.last_collection_start
            self.collection_last_time = self.last_collection_start

        log_with_context(
            self.logger,
            "info",
            f"Finished collection of {units} units in {self.last_scrape_duration}",
            units=units,
            callbacks=published,
        )


class GeneralRunner(CollectorRunner):
    def fan_out_units(self) -> list[Any] | None:
        return [None]


class ProjectRunner(CollectorRunner):
    """
    Runner fanning out over the project snapshot.

    Starts UNINITIALIZED and performs no passes until a non-empty snapshot
    was assigned. The snapshot is swapped as a whole and captured once per
    pass.
    """

    initial_state = RunnerState.UNINITIALIZED

    def __init__(self, *args, **kwargs):
        self._projects: tuple[Project, ...] = ()
        super().__init__(*args, **kwargs)

    @property
    def projects(self) -> tuple[Project, ...]:
        return self._projects

    def set_projects(self, projects: Iterable[Project]) -> None:
        self._projects = tuple(projects)
        if self._projects and self.state is RunnerState.UNINITIALIZED:
            self.state = RunnerState.IDLE

    def fan_out_units(self) -> list[Any] | None:
        projects = self._projects
        if not projects:
            return None
        return list(projects)

    def unit_logger(self, unit: Project) -> ContextLoggerAdapter:
        return self.logger.bind(project=unit.name)


class AgentPoolRunner(CollectorRunner):
    """Runner fanning out over the agent pool id snapshot."""

    initial_state = RunnerState.UNINITIALIZED

    def __init__(self, *args, **kwargs):
        self._agent_pools: tuple[int, ...] = ()
        super().__init__(*args, **kwargs)

    @property
    def agent_pools(self) -> tuple[int, ...]:
        return self._agent_pools

    def set_agent_pools(self, agent_pools: Iterable[int]) -> None:
        self._agent_pools = tuple(agent_pools)
        if self._agent_pools and self.state is RunnerState.UNINITIALIZED:
            self.state = RunnerState.IDLE

    def fan_out_units(self) -> list[Any] | None:
        agent_pools = self._agent_pools
        if not agent_pools:
            return None
        return list(agent_pools)

    def unit_logger(self, unit: int) -> ContextLoggerAdapter:
        return self.logger.bind(agentPool=unit)


class QueryRunner(CollectorRunner):
    """Runner with one unit per configured saved query."""

    def __init__(self, *args, queries: Iterable[QueryRef] = (), **kwargs):
        self.queries = list(queries)
        super().__init__(*args, **kwargs)

    def fan_out_units(self) -> list[Any] | None:
        return list(self.queries)

    def unit_logger(self, unit: QueryRef) -> ContextLoggerAdapter:
        return self.logger.bind(query=str(unit))
