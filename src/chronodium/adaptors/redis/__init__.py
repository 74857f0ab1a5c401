from .factory import redis_engine_factory, redis_store_factory
from .handle import RedisStore

__all__ = ["redis_engine_factory", "redis_store_factory", "RedisStore"]
