import asyncio

from wristband.datalog import MonitorState
from wristband.pipeline import BiometricPipeline
from wristband.streaming import CONNECTION_RESET, run_stream
from wristband.transport import replay_file


def run(fragments_in):
    async def scenario():
        fragments = asyncio.Queue()
        for item in fragments_in:
            fragments.put_nowait(item)
        fragments.put_nowait(None)

        pipeline = BiometricPipeline()
        state = MonitorState()
        await run_stream(fragments, pipeline, state)
        return pipeline, state

    return asyncio.run(scenario())


def test_results_published_in_order(make_frame):
    stream = (make_frame(timestamp="1") + "*" + make_frame(timestamp="2") + "*").encode()
    seen = []

    class Recorder(MonitorState):
        def apply(self, result):
            seen.append(result.snapshot.device_time)
            super().apply(result)

    async def scenario():
        fragments = asyncio.Queue()
        for i in range(0, len(stream), 20):
            fragments.put_nowait(stream[i:i + 20])
        fragments.put_nowait(None)
        await run_stream(fragments, BiometricPipeline(), Recorder())

    asyncio.run(scenario())
    assert seen == [1.0, 2.0]


def test_connection_reset_discards_partial_frame(make_frame):
    first = (make_frame(timestamp="1000") + "*").encode()
    second = (make_frame(timestamp="3000") + "*").encode()
    pipeline, state = run([first, b"2000;ECG,5,5,5", CONNECTION_RESET, second])

    assert state.snapshot_count == 2
    assert state.latest.device_time == 3000.0
    assert pipeline.rejected_count == 0
    assert pipeline.assembler.pending == 0


def test_stream_ends_on_sentinel():
    pipeline, state = run([])
    assert state.latest is None
    assert pipeline.frame_count == 0


def test_replay_file_feeds_pipeline(tmp_path, make_frame):
    path = tmp_path / "capture.bin"
    payload = "".join(make_frame(timestamp=str(ts)) + "*" for ts in (1, 2, 3))
    path.write_bytes(payload.encode())

    async def scenario():
        fragments = asyncio.Queue()
        pipeline = BiometricPipeline()
        state = MonitorState()
        count, _ = await asyncio.gather(
            replay_file(path, fragments, chunk_size=7),
            run_stream(fragments, pipeline, state),
        )
        return count, state

    count, state = asyncio.run(scenario())
    assert count == -(-len(payload) // 7)
    assert state.snapshot_count == 3
    assert state.latest.device_time == 3.0
