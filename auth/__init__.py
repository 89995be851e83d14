from .session import SessionContext

__all__ = ["SessionContext"]
