"""ws-connector - HTTP connector for web-service APIs."""

import logging

from ws_connector.config_loader import connector_from_config, load_connector_settings
from ws_connector.connector import HttpConnector, HttpConnectorBuilder
from ws_connector.errors import (
    ArgumentError,
    ConfigurationError,
    ConnectorClosedError,
    ConnectorError,
    HttpError,
    ResponseConsumedError,
    TransportError,
)
from ws_connector.models import (
    ConnectorSettings,
    GetRequest,
    MediaTypes,
    Part,
    PostRequest,
    WsRequest,
    parse_request,
)
from ws_connector.response import ConnectorResponse

__version__ = "0.1.0"

__all__ = [
    "ArgumentError",
    "ConfigurationError",
    "ConnectorClosedError",
    "ConnectorError",
    "ConnectorResponse",
    "ConnectorSettings",
    "GetRequest",
    "HttpConnector",
    "HttpConnectorBuilder",
    "HttpError",
    "MediaTypes",
    "Part",
    "PostRequest",
    "ResponseConsumedError",
    "TransportError",
    "WsRequest",
    "connector_from_config",
    "load_connector_settings",
    "parse_request",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
