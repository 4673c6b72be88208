from ota_server.db.base import Base
from ota_server.db.session import SessionLocal, engine

__all__ = ["Base", "SessionLocal", "engine"]
