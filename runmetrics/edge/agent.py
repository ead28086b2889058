"""
Metrics Agent - Main Daemon.

Polls the runtime statistics of its own process on one timer and reports
the collected snapshot to the metrics server on another.
"""

import asyncio
import logging
import signal
from enum import Enum
from typing import AsyncIterator, Optional

from ..metrics import Counter, Gauge, Metric
from .collectors import RuntimeCollector
from .config import AgentConfig
from .sender import MetricsSender, SendResult
from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class AgentState(Enum):
    """Agent lifecycle."""
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class MetricsAgent:
    """
    Main agent daemon.

    The poll loop and the report loop are independent tasks. They share
    the snapshot (guarded by its reader/writer lock) and a one-shot stop
    event that wakes both of them.
    """

    def __init__(
        self,
        config: AgentConfig,
        collector: Optional[RuntimeCollector] = None,
        sender: Optional[MetricsSender] = None,
    ):
        """Initialize the agent."""
        self.config = config
        self.snapshot = Snapshot()
        self.collector = collector or RuntimeCollector()
        self.sender = sender or MetricsSender(
            base_url=config.base_url,
            timeout=config.http_timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
        )

        self.state = AgentState.IDLE
        self._stop_event = asyncio.Event()

        # Counter totals the server has acknowledged
        self._reported: dict[str, int] = {}

    async def run(self):
        """Run both loops until stop() is called."""
        if self.state is not AgentState.IDLE:
            raise RuntimeError(f"agent cannot be started from state {self.state.value}")

        logger.info(
            f"Starting agent: server={self.config.base_url}, "
            f"poll={self.config.poll_interval}s, report={self.config.report_interval}s"
        )
        self.state = AgentState.RUNNING

        tasks = [
            asyncio.create_task(self._poll_loop(), name="poll"),
            asyncio.create_task(self._report_loop(), name="report"),
        ]

        try:
            await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            logger.info("Agent tasks cancelled")
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        finally:
            await self.sender.close()
            self.state = AgentState.STOPPED
            logger.info("Agent stopped")

    def stop(self):
        """Signal both loops to finish. Safe to call more than once."""
        if self._stop_event.is_set():
            return
        logger.info("Stopping agent...")
        if self.state is AgentState.RUNNING:
            self.state = AgentState.DRAINING
        self._stop_event.set()

    async def _ticks(self, interval: float) -> AsyncIterator[int]:
        """Yield once per ``interval`` on a fixed schedule until stopped.

        Missed ticks are dropped rather than fired in a burst.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + interval
        tick = 0

        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=max(deadline - loop.time(), 0))
                return
            except asyncio.TimeoutError:
                pass

            tick += 1
            yield tick

            now = loop.time()
            deadline += interval
            while deadline <= now:
                deadline += interval

    async def _poll_loop(self):
        """Collect runtime metrics periodically."""
        async for _ in self._ticks(self.config.poll_interval):
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Runtime metrics collection error: {e}")

        logger.info("Polling stopped")

    async def _report_loop(self):
        """Send the snapshot periodically."""
        async for _ in self._ticks(self.config.report_interval):
            try:
                await self.report_once()
            except Exception as e:
                logger.error(f"Report error: {e}")

        logger.info("Reporting stopped")

    async def poll_once(self) -> int:
        """Collect once. Returns the new PollCount."""
        poll_count = await self.collector.collect(self.snapshot)
        if self.config.verbose:
            view = self.snapshot.view()
            logger.debug(
                f"Collected metrics: total={len(view)}, gauges={len(view.gauges)}, "
                f"counters={len(view.counters)}, poll_count={poll_count}"
            )
        return poll_count

    def pending_metrics(self) -> list[Metric]:
        """Metrics to transmit now: gauges as absolute values, counters as deltas."""
        view = self.snapshot.view()

        metrics: list[Metric] = [Gauge(name, value) for name, value in view.gauges.items()]
        for name, total in view.counters.items():
            delta = total - self._reported.get(name, 0)
            if delta:
                metrics.append(Counter(name, delta))
        return metrics

    async def report_once(self) -> tuple[int, int]:
        """Send every snapshot entry once. Returns (sent, failed)."""
        metrics = self.pending_metrics()
        send = self.sender.send_metric_json if self.config.use_json else self.sender.send_metric

        results: list[SendResult] = await asyncio.gather(*(send(m) for m in metrics))

        sent = failed = 0
        for metric, result in zip(metrics, results):
            if result.success:
                sent += 1
                if isinstance(metric, Counter):
                    self._reported[metric.name] = self._reported.get(metric.name, 0) + metric.delta
            else:
                failed += 1
                if self.config.verbose:
                    logger.warning(f"Error sending {metric.type.value} {metric.name}: {result.error}")

        if failed:
            logger.warning(f"Sent metrics with errors: successful={sent}, failed={failed}")
        else:
            logger.info(f"Successfully sent {sent} metrics")
        return sent, failed


def run_agent(config: AgentConfig):
    """Run the agent until SIGINT or SIGTERM."""

    async def main():
        agent = MetricsAgent(config)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, agent.stop)
            except NotImplementedError:
                # Windows event loops have no signal handlers
                pass

        await agent.run()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run_agent(AgentConfig.from_cli())
