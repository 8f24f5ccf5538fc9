"""Tests for the pipeline orchestrator."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable

import pytest

from botsim.domain.types import UNPOSITIONED, Direction, Grid, Positioned
from botsim.pipeline.engine import PipelineError, RobotEngine, run_pipeline, simulate
from botsim.pipeline.result import RunSummary
from botsim.pipeline.streams import BufferSink

RunChunks = Callable[..., tuple[str, RunSummary]]

SCENARIOS = [
    ("PLACE 0,0,NORTH\nMOVE\nREPORT", "0,1,NORTH\n"),
    ("MOVE\nLEFT\nPLACE 0,0,NORTH\nREPORT", "0,0,NORTH\n"),
    ("PLACE 1,2,EAST\nMOVE\nMOVE\nLEFT\nMOVE\nREPORT", "3,3,NORTH\n"),
    ("PLACE 0,0,NORTH\nLEFT\nMOVE\nREPORT", "0,0,WEST\n"),
    ("PLACE 4,4,NORTH\nMOVE\nREPORT", "4,4,NORTH\n"),
]

CIRCLE_WALK = "\n".join(
    ["PLACE 0,0,NORTH", "MOVE", "RIGHT", "MOVE", "RIGHT", "MOVE", "RIGHT", "MOVE", "REPORT"]
)

SPINNING_REPORTS = "\n".join(
    ["PLACE 2,2,NORTH"] + ["REPORT", "RIGHT"] * 4 + ["REPORT"]
)


async def iter_chunks(chunks: list[str]) -> AsyncIterator[str]:
    for chunk in chunks:
        yield chunk


class FailingSink(BufferSink):
    """Sink whose reader has gone away."""

    def write(self, data: bytes) -> bool:
        raise BrokenPipeError("reader closed")


class TestScenarios:
    @pytest.mark.parametrize("commands,expected", SCENARIOS)
    def test_documented_scenarios(self, commands: str, expected: str) -> None:
        assert simulate(commands) == expected

    def test_circle_walk(self) -> None:
        assert simulate(CIRCLE_WALK) == "0,0,WEST\n"

    def test_multiple_reports(self) -> None:
        assert simulate(SPINNING_REPORTS).splitlines() == [
            "2,2,NORTH",
            "2,2,EAST",
            "2,2,SOUTH",
            "2,2,WEST",
            "2,2,NORTH",
        ]

    def test_report_before_place_is_silent(self) -> None:
        assert simulate("REPORT\nMOVE\nLEFT\nRIGHT\nREPORT\n") == ""

    def test_off_grid_place_keeps_previous_state(self) -> None:
        assert simulate("PLACE 1,1,EAST\nPLACE 5,5,NORTH\nREPORT\n") == "1,1,EAST\n"

    def test_malformed_lines_dropped(self) -> None:
        commands = "PLACE1,1,NORTH\nPLACE 2,2,EAST\nMOVEnow\nLEFT\ndonotRIGHT\nREPORT\n"
        assert simulate(commands) == "2,2,NORTH\n"

    def test_custom_grid(self) -> None:
        commands = "PLACE 6,0,EAST\nMOVE\nMOVE\nREPORT\n"
        assert simulate(commands, grid=Grid(width=8, height=1)) == "7,0,EAST\n"

    def test_crlf_input(self) -> None:
        assert simulate("PLACE 0,0,NORTH\r\nMOVE\r\nREPORT\r\n") == "0,1,NORTH\n"

    def test_huge_coordinate_rejected_not_fatal(self, run_chunks: RunChunks) -> None:
        commands = "PLACE 0,0,NORTH\nPLACE " + "9" * 5000 + ",0,NORTH\nREPORT\n"
        output, summary = run_chunks([commands])
        assert output == "0,0,NORTH\n"
        assert summary.rejected == 1

    def test_unicode_lookalike_keyword_rejected_not_fatal(self, run_chunks: RunChunks) -> None:
        output, summary = run_chunks(["PLACE 0,0,NORTH\nRİGHT\nREPORT\n".encode()])
        assert output == "0,0,NORTH\n"
        assert summary.rejected == 1


class TestChunking:
    def test_any_two_way_split_matches_single_chunk(self, run_chunks: RunChunks) -> None:
        data = b"PLACE 1,2,EAST\r\nMOVE\nMOVE\nLEFT\nMOVE\nREPORT\nPLACE 0,0,SOUTH\nREPORT"
        expected, _ = run_chunks([data])
        assert expected == "3,3,NORTH\n0,0,SOUTH\n"
        for offset in range(len(data) + 1):
            output, _ = run_chunks([data[:offset], data[offset:]])
            assert output == expected, f"split at byte {offset}"

    def test_multibyte_character_split_across_chunks(self, run_chunks: RunChunks) -> None:
        output, summary = run_chunks([b"PLACE 1,1,NORTH\n\xc3", b"\xa9\nREPORT\n"])
        assert output == "1,1,NORTH\n"
        assert summary.rejected == 1

    def test_invalid_utf8_is_rejected_not_fatal(self, run_chunks: RunChunks) -> None:
        output, summary = run_chunks([b"\xff\xfe\nPLACE 0,0,EAST\nREPORT\n"])
        assert output == "0,0,EAST\n"
        assert summary.rejected == 1

    def test_text_chunks_accepted(self, run_chunks: RunChunks) -> None:
        output, _ = run_chunks(["PLACE 3,3,", "WEST\nREPORT\n"])
        assert output == "3,3,WEST\n"


class TestBackpressure:
    def test_saturated_sink_drained_in_order(self, run_chunks: RunChunks) -> None:
        lines = ["PLACE 0,0,NORTH"]
        expected = []
        for step in range(20):
            lines += ["RIGHT", "REPORT"]
            facing = list(Direction)[(step + 1) % 4]
            expected.append(f"0,0,{facing}")
        commands = "\n".join(lines)

        sink = BufferSink(capacity=1)
        summary = asyncio.run(run_pipeline(iter_chunks([commands]), sink, queue_size=1))

        assert sink.getvalue().splitlines() == expected
        # One drain per saturated write, plus the final close.
        assert sink.drains == summary.reports + 1

    def test_tiny_queue_matches_default(self, run_chunks: RunChunks) -> None:
        commands = "\n".join(cmd for cmd, _ in SCENARIOS)
        default, _ = run_chunks([commands])
        tiny, _ = run_chunks(list(commands), queue_size=1, capacity=1)
        assert tiny == default


class TestSummary:
    def test_counters(self, run_chunks: RunChunks) -> None:
        commands = "PLACE 0,0,NORTH\nJUMP\n\nMOVE\nPLACE 9,9,EAST\nREPORT\n"
        _, summary = run_chunks([commands])
        assert summary.grid_width == 5
        assert summary.grid_height == 5
        assert summary.lines_read == 5
        assert summary.instructions == 4
        assert summary.rejected == 1
        assert summary.ignored == 1
        assert summary.reports == 1
        assert summary.final_state == "0,1,NORTH"

    def test_unplaced_run(self, run_chunks: RunChunks) -> None:
        _, summary = run_chunks(["MOVE\nREPORT\n"])
        assert summary.final_state is None
        assert summary.ignored == 2
        assert summary.reports == 0


class TestEngine:
    def test_state_and_grid_owned_by_engine(self) -> None:
        engine = RobotEngine(Grid(width=3, height=3))
        sink = BufferSink()
        asyncio.run(engine.run(iter_chunks(["PLACE 2,2,WEST\nMOVE\n"]), sink))
        assert engine.state == Positioned(1, 2, Direction.WEST)
        assert sink.closed

    def test_each_run_starts_unpositioned(self) -> None:
        engine = RobotEngine()
        asyncio.run(engine.run(iter_chunks(["PLACE 1,1,NORTH\n"]), BufferSink()))
        sink = BufferSink()
        summary = asyncio.run(engine.run(iter_chunks(["REPORT\n"]), sink))
        assert sink.getvalue() == ""
        assert summary.final_state is None
        assert engine.state is UNPOSITIONED

    def test_queue_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="queue_size"):
            RobotEngine(queue_size=0)


class TestFailures:
    def test_sink_error_aborts_run(self) -> None:
        consumed = 0

        async def source() -> AsyncIterator[str]:
            nonlocal consumed
            yield "PLACE 0,0,NORTH\nREPORT\n"
            consumed += 1
            for _ in range(1000):
                yield "MOVE\n"
                consumed += 1

        engine = RobotEngine(queue_size=1)
        with pytest.raises(PipelineError) as excinfo:
            asyncio.run(engine.run(source(), FailingSink()))

        assert isinstance(excinfo.value.__cause__, BrokenPipeError)
        assert excinfo.value.state == Positioned(0, 0, Direction.NORTH)
        assert consumed < 1000

    def test_source_error_propagates(self) -> None:
        async def source() -> AsyncIterator[bytes]:
            yield b"PLACE 0,0,NORTH\n"
            raise OSError("disk went away")

        sink = BufferSink()
        with pytest.raises(PipelineError, match="disk went away"):
            asyncio.run(run_pipeline(source(), sink))
        assert not sink.closed


class TestStreaming:
    def test_reports_flushed_while_input_is_idle(self) -> None:
        sink = BufferSink()
        flushed: list[bytes] = []

        async def source() -> AsyncIterator[str]:
            yield "PLACE 0,0,NORTH\nREPORT\nMOVE\n"
            for _ in range(200):
                if sink.data:
                    break
                await asyncio.sleep(0.01)
            flushed.append(bytes(sink.data))
            yield "REPORT\n"

        asyncio.run(run_pipeline(source(), sink))

        assert flushed == [b"0,0,NORTH\n"]
        assert sink.getvalue() == "0,0,NORTH\n0,1,NORTH\n"

    def test_no_flush_while_instructions_are_queued(self) -> None:
        sink = BufferSink()
        asyncio.run(run_pipeline(iter_chunks(["PLACE 0,0,NORTH\nREPORT\nMOVE\nREPORT\n"]), sink))
        # The whole input is queued before the first REPORT: only the close drains.
        assert sink.drains == 1
