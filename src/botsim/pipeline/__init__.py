"""Pipeline layer: chunk reassembly, backpressure, and the run orchestrator.

The pipeline may import from domain and output, never from config or the CLI.
"""

from botsim.pipeline.engine import PipelineError, RobotEngine, run_pipeline, simulate
from botsim.pipeline.result import RunSummary

__all__ = ["PipelineError", "RobotEngine", "RunSummary", "run_pipeline", "simulate"]
