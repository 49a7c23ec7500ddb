from .animation_driver import AnimationDriver, DriverState, FramePacer, FrameScheduler, StepScheduler, TickResult
from .frame_matrix import FrameCommit, FrameMatrix, FullRewrite, WriteBatch, compile_frame_batch
from .log_builder import LogItem, LogListBuilder, LogStoreItem, TaggedLogEntry, build_log_list, format_hhmmss
from .op_mode_lifecycle import (
    STOP_OP_MODE_TAG,
    LifecycleTransition,
    OpModeLifecycle,
    OpModeState,
    bind_driver,
)
from .telemetry import KeyMeta, TelemetryKeyTracker, TelemetryPacket, parse_numeric

__all__ = [
    "AnimationDriver",
    "DriverState",
    "FrameCommit",
    "FrameMatrix",
    "FramePacer",
    "FrameScheduler",
    "FullRewrite",
    "KeyMeta",
    "LifecycleTransition",
    "LogItem",
    "LogListBuilder",
    "LogStoreItem",
    "OpModeLifecycle",
    "OpModeState",
    "STOP_OP_MODE_TAG",
    "StepScheduler",
    "TaggedLogEntry",
    "TelemetryKeyTracker",
    "TelemetryPacket",
    "TickResult",
    "WriteBatch",
    "bind_driver",
    "build_log_list",
    "compile_frame_batch",
    "format_hhmmss",
    "parse_numeric",
]
