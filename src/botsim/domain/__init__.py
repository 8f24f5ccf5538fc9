"""Domain layer: robot types, command grammar, and state transitions.

This layer depends only on the stdlib.
It must never import from pipeline, output, config, or the CLI.
"""
