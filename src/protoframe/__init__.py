from protoframe.ask import AskChannel, PendingAsk
from protoframe.codec import (
    JsonSerializer,
    MsgpackSerializer,
    RecordSerializer,
    WireRecord,
    decode,
    encode_body,
    encode_response,
    get_serializer,
)
from protoframe.config import (
    AskConfig,
    ConnectConfig,
    PingConfig,
    ProtoframeConfig,
    SerializationConfig,
    discover_config,
    load_config,
)
from protoframe.errors import (
    AskTimeout,
    ConnectionFailed,
    MalformedRecord,
    ProtoframeError,
    TransportClosed,
    UnknownMessageType,
)
from protoframe.matcher import matches_body, matches_response
from protoframe.protocol import MessageType, ProtocolDescriptor, ask_type, tell_type
from protoframe.pubsub import ProtoframePublisher, ProtoframePubsub, ProtoframeSubscriber
from protoframe.registry import ListenerRegistry
from protoframe.system import Liveness, system_protocol
from protoframe.tell import TellChannel
from protoframe.transport import (
    MemoryTransport,
    StreamTransport,
    Subscription,
    Transport,
    serve,
)

__all__ = [
    "AskChannel",
    "AskConfig",
    "AskTimeout",
    "ConnectConfig",
    "ConnectionFailed",
    "JsonSerializer",
    "ListenerRegistry",
    "Liveness",
    "MalformedRecord",
    "MemoryTransport",
    "MessageType",
    "MsgpackSerializer",
    "PendingAsk",
    "PingConfig",
    "ProtocolDescriptor",
    "ProtoframeConfig",
    "ProtoframeError",
    "ProtoframePublisher",
    "ProtoframePubsub",
    "ProtoframeSubscriber",
    "RecordSerializer",
    "SerializationConfig",
    "StreamTransport",
    "Subscription",
    "TellChannel",
    "Transport",
    "TransportClosed",
    "UnknownMessageType",
    "WireRecord",
    "ask_type",
    "decode",
    "discover_config",
    "encode_body",
    "encode_response",
    "get_serializer",
    "load_config",
    "matches_body",
    "matches_response",
    "serve",
    "system_protocol",
    "tell_type",
]
