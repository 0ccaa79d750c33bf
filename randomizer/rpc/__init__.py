from .ws import WsClient

__all__ = ["WsClient"]
