from authsession.storage.base import SessionStorage
from authsession.storage.errors import StorageError
from authsession.storage.file import FileStorage
from authsession.storage.memory import MemoryStorage
from authsession.storage.redis_cache import RedisStorage

__all__ = [
    "FileStorage",
    "MemoryStorage",
    "RedisStorage",
    "SessionStorage",
    "StorageError",
]
