from setkeeper.db.database import get_session, init_db
from setkeeper.db.operations import get_blob, put_blob

__all__ = [
    "get_blob",
    "get_session",
    "init_db",
    "put_blob",
]
