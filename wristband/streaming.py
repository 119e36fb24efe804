"""
Message passing between transport, pipeline and sink

    transport --fragments--> consume_fragments --results--> publish_results --> MonitorState

Both channels are unbounded asyncio queues read by exactly one task, so
ordering is preserved and nothing is dropped. ``None`` ends a stream.
CONNECTION_RESET in the fragment channel discards any partial frame left
over from a previous connection.
"""

import asyncio
import logging

from .datalog import MonitorState
from .pipeline import BiometricPipeline

logger = logging.getLogger(__name__)

CONNECTION_RESET = object()


async def consume_fragments(fragments: asyncio.Queue, pipeline: BiometricPipeline,
                            results: asyncio.Queue):
    """Run every fragment through the pipeline, in arrival order"""
    while True:
        fragment = await fragments.get()

        if fragment is None:
            results.put_nowait(None)
            break

        if fragment is CONNECTION_RESET:
            if pipeline.assembler.pending:
                logger.info(f"Discarding {pipeline.assembler.pending} pending bytes from previous connection")
            pipeline.reset()
            continue

        # Processing is synchronous: the next fragment waits for this one
        for result in pipeline.feed(fragment):
            results.put_nowait(result)

    logger.info(f"Fragment consumer stopped: {pipeline.get_status()}")


async def publish_results(results: asyncio.Queue, state: MonitorState):
    """Hand each result to the sink (fire-and-forget from the pipeline's side)"""
    while True:
        result = await results.get()
        if result is None:
            break
        state.apply(result)


async def run_stream(fragments: asyncio.Queue, pipeline: BiometricPipeline,
                     state: MonitorState):
    """Run consumer and publisher until the fragment stream ends"""
    results = asyncio.Queue()
    await asyncio.gather(
        consume_fragments(fragments, pipeline, results),
        publish_results(results, state),
    )
