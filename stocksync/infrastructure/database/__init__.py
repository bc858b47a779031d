from .session import Base, create_session_factory, create_state_engine

__all__ = ["Base", "create_session_factory", "create_state_engine"]
