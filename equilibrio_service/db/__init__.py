"""
缓存后端连接管理模块
Redis 为一级缓存，MongoDB 为二级缓存；两者都是可选的，连接失败时服务降级为直接计算
"""

import asyncio
import logging
from typing import Awaitable, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from redis.asyncio import Redis, ConnectionPool

from equilibrio_service.config import settings

logger = logging.getLogger(__name__)

# ── 全局连接实例 ─────────────────────────────────────────
_redis_client: Optional[Redis] = None
_redis_pool: Optional[ConnectionPool] = None
_mongo_client: Optional[AsyncIOMotorClient] = None
_mongo_db: Optional[AsyncIOMotorDatabase] = None

# 启动探测与健康检查比普通缓存操作宽松
_PROBE_TIMEOUT = 2.0


async def init_redis() -> bool:
    """连接 Redis 一级缓存，返回是否可用"""
    global _redis_client, _redis_pool
    if not settings.REDIS_ENABLED:
        logger.info("Redis 未启用，一级缓存关闭")
        return False

    pool = ConnectionPool.from_url(
        settings.REDIS_URL,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        decode_responses=True,
        socket_connect_timeout=_PROBE_TIMEOUT,
        socket_timeout=settings.CACHE_OP_TIMEOUT,
        client_name="equilibrio-service",
    )
    client = Redis(connection_pool=pool)
    try:
        await asyncio.wait_for(client.ping(), timeout=_PROBE_TIMEOUT)
    except Exception as exc:
        logger.warning(f"⚠️ Redis 不可用，跳过一级缓存: {exc}")
        await pool.disconnect()
        return False

    _redis_pool, _redis_client = pool, client
    logger.info(f"✅ Redis 一级缓存就绪: {settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}")
    return True


async def init_mongodb() -> bool:
    """
    连接 MongoDB 二级缓存并确保缓存集合索引

    缓存集合上建两个索引：
      key        唯一索引，用于按键读写
      expires_at TTL 索引，过期文档由 MongoDB 后台清理（读取时仍会再校验一次）
    """
    global _mongo_client, _mongo_db
    if not settings.MONGODB_ENABLED:
        logger.info("MongoDB 未启用，二级缓存关闭")
        return False

    client = AsyncIOMotorClient(
        settings.MONGO_URI,
        maxPoolSize=settings.MONGO_MAX_CONNECTIONS,
        minPoolSize=settings.MONGO_MIN_CONNECTIONS,
        serverSelectionTimeoutMS=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        connectTimeoutMS=settings.MONGO_CONNECT_TIMEOUT_MS,
        socketTimeoutMS=settings.MONGO_SOCKET_TIMEOUT_MS,
        tz_aware=True,
    )
    database = client[settings.MONGODB_DATABASE]
    try:
        await client.admin.command("ping")
        collection = database[settings.CACHE_COLLECTION]
        await collection.create_index([("key", ASCENDING)], unique=True)
        await collection.create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)
    except Exception as exc:
        logger.warning(f"⚠️ MongoDB 不可用，跳过二级缓存: {exc}")
        client.close()
        return False

    _mongo_client, _mongo_db = client, database
    logger.info(
        f"✅ MongoDB 二级缓存就绪: {settings.MONGODB_HOST}:{settings.MONGODB_PORT}"
        f"/{settings.MONGODB_DATABASE}.{settings.CACHE_COLLECTION}"
    )
    return True


async def close_connections():
    """释放全部缓存后端连接"""
    global _mongo_client, _mongo_db, _redis_client, _redis_pool
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis 连接已释放")
    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None
        _mongo_db = None
        logger.info("MongoDB 连接已释放")


def get_redis() -> Optional[Redis]:
    """一级缓存客户端，未连接时为 None"""
    return _redis_client


def get_mongo_db() -> Optional[AsyncIOMotorDatabase]:
    """二级缓存所在数据库，未连接时为 None"""
    return _mongo_db


async def _probe(ping: Awaitable, host: str) -> dict:
    try:
        await asyncio.wait_for(ping, timeout=_PROBE_TIMEOUT)
    except Exception as exc:
        return {"status": "unhealthy", "host": host, "error": str(exc) or type(exc).__name__}
    return {"status": "healthy", "host": host}


async def check_health() -> dict:
    """
    各缓存后端状态：
      disabled      配置未启用
      disconnected  已启用但启动时连接失败
      healthy / unhealthy  按当前 ping 结果
    """
    result = {}

    if _redis_client is not None:
        result["redis"] = await _probe(_redis_client.ping(), settings.REDIS_HOST)
    else:
        result["redis"] = {"status": "disconnected" if settings.REDIS_ENABLED else "disabled"}

    if _mongo_client is not None:
        result["mongodb"] = await _probe(_mongo_client.admin.command("ping"), settings.MONGODB_HOST)
    else:
        result["mongodb"] = {"status": "disconnected" if settings.MONGODB_ENABLED else "disabled"}

    return result
