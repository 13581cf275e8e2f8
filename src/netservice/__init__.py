from __future__ import annotations

from netservice._client import HttpConfig, NetworkService
from netservice._errors import (
    EncodingError,
    InvalidURLError,
    NetworkError,
    RequestFailedError,
    ServerError,
    SSEDecodeError,
)
from netservice._sse import DecoderState, SSEDecoder, SSEEvent, feed
from netservice.plugins import AccessTokenPlugin, LoggingPlugin, PluginType, RequestResult
from netservice.target import (
    HTTPMethod,
    JSONEncoding,
    RequestData,
    RequestJSONEncodable,
    RequestParameters,
    RequestPlain,
    Target,
    TargetType,
    URLEncoding,
)

__all__ = [
    "AccessTokenPlugin",
    "DecoderState",
    "EncodingError",
    "HTTPMethod",
    "HttpConfig",
    "InvalidURLError",
    "JSONEncoding",
    "LoggingPlugin",
    "NetworkError",
    "NetworkService",
    "PluginType",
    "RequestData",
    "RequestFailedError",
    "RequestJSONEncodable",
    "RequestParameters",
    "RequestPlain",
    "RequestResult",
    "SSEDecodeError",
    "SSEDecoder",
    "SSEEvent",
    "ServerError",
    "Target",
    "TargetType",
    "URLEncoding",
    "feed",
]

__version__ = "0.1.0"
