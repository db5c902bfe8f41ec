"""Runtime capabilities shared by chat commands: context, sinks, tools and lanes."""

from runtime.context import CommandContext, LivenessFlag, MessageSink
from runtime.lane_queue import LaneQueue
from runtime.tool_registry import PlanValidationError, ToolRegistry, UnknownToolError
from runtime.transcript import MessageTranscript

__all__ = [
    "CommandContext",
    "LaneQueue",
    "LivenessFlag",
    "MessageSink",
    "MessageTranscript",
    "PlanValidationError",
    "ToolRegistry",
    "UnknownToolError",
]
