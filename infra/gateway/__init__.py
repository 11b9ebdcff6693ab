from infra.gateway.client import GatewayClient, GatewayError
from infra.gateway.sse import SSEDecoder, parse_data_line

__all__ = ["GatewayClient", "GatewayError", "SSEDecoder", "parse_data_line"]
