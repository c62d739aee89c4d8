"""
Path search: the depth-first builder, its checkers and the adjacency list
that records every decision.
"""

from certpathbuilder.builder.adjacency import AdjacencyList, BuildStep, StepResult, Vertex
from certpathbuilder.builder.constraints_checker import ConstraintsChecker, ConstraintsState
from certpathbuilder.builder.key_checker import KeyChecker
from certpathbuilder.builder.path_builder import BuilderParams, BuildResult, PathBuilder, build
from certpathbuilder.builder.state import CancellationToken, ForwardState

__all__ = [
    "AdjacencyList",
    "BuildResult",
    "BuildStep",
    "BuilderParams",
    "CancellationToken",
    "ConstraintsChecker",
    "ConstraintsState",
    "ForwardState",
    "KeyChecker",
    "PathBuilder",
    "StepResult",
    "Vertex",
    "build",
]
