"""Streaming protocol: frame decoding, delta classification, sessions."""

from streamchat.stream.classifier import (
    DeltaClassifier,
    DeltaEvent,
    DeltaKind,
    StreamAccumulator,
)
from streamchat.stream.decoder import DONE, ChunkDecoder, iter_frames
from streamchat.stream.session import (
    SessionState,
    StreamCallbacks,
    StreamResult,
    StreamSession,
)

__all__ = [
    "DONE",
    "ChunkDecoder",
    "DeltaClassifier",
    "DeltaEvent",
    "DeltaKind",
    "SessionState",
    "StreamAccumulator",
    "StreamCallbacks",
    "StreamResult",
    "StreamSession",
    "iter_frames",
]
