"""Participant selection and fair-partition engine (framework-agnostic)."""

from .errors import (
    EngineError,
    UserInputError,
    ResolutionError,
    ExternalActionError,
)
from .models import (
    Participant,
    DestinationChannel,
    PartitionRequest,
    TeamAssignment,
    RelocationOutcome,
    RelocationPolicy,
    ExecutionReport,
)
from .random_source import RandomSource, StdRandomSource, seeded, default_source
from .selection import filter_participants, select_one
from .partition import parse_channel_names, resolve_channels, partition
from .executor import AssignmentExecutor, RELOCATION_POLICY

__all__ = [
    # Errors
    "EngineError",
    "UserInputError",
    "ResolutionError",
    "ExternalActionError",
    # Models
    "Participant",
    "DestinationChannel",
    "PartitionRequest",
    "TeamAssignment",
    "RelocationOutcome",
    "RelocationPolicy",
    "ExecutionReport",
    # Randomness
    "RandomSource",
    "StdRandomSource",
    "seeded",
    "default_source",
    # Pipeline
    "filter_participants",
    "select_one",
    "parse_channel_names",
    "resolve_channels",
    "partition",
    "AssignmentExecutor",
    "RELOCATION_POLICY",
]
