from .builder import DEFAULT_USE_CASE, FlowPart, ModelBuilder, StepPart, UseCasePart
from .errors import (
    AmbiguousReactionError,
    ElementAlreadyInModelError,
    InfiniteRepetitionError,
    InvalidModelError,
    MissingBehaviorError,
    MissingStepPartError,
    NoSuchElementInModelError,
    ReactionError,
    ReactionAlreadyTriggeredError,
    ReentrantReactionError,
)
from .flow_position import After, Anytime, AtFirst, ConditionPosition, FlowPosition, InsteadOf
from .jumps import ContinuesAfter, ContinuesAt, Jump, Restart
from .model import BASIC_FLOW, Actor, Condition, Flow, Model, Step, UseCase
from .position import Position
from .reaction import Reaction, ReactionAdapter, ReactionTrigger
from .runner import OutputSink, Runner
from .trace import ReactionRecord, TraceRecorder

# Kernel exports cover model building and running; composition is imported explicitly.
__all__ = [
    "BASIC_FLOW",
    "DEFAULT_USE_CASE",
    "Actor",
    "After",
    "AmbiguousReactionError",
    "Anytime",
    "AtFirst",
    "Condition",
    "ConditionPosition",
    "ContinuesAfter",
    "ContinuesAt",
    "ElementAlreadyInModelError",
    "Flow",
    "FlowPart",
    "FlowPosition",
    "InfiniteRepetitionError",
    "InsteadOf",
    "InvalidModelError",
    "Jump",
    "MissingBehaviorError",
    "MissingStepPartError",
    "Model",
    "ModelBuilder",
    "NoSuchElementInModelError",
    "OutputSink",
    "Position",
    "Reaction",
    "ReactionAdapter",
    "ReactionAlreadyTriggeredError",
    "ReactionError",
    "ReactionRecord",
    "ReactionTrigger",
    "ReentrantReactionError",
    "Restart",
    "Runner",
    "Step",
    "StepPart",
    "TraceRecorder",
    "UseCase",
    "UseCasePart",
]
