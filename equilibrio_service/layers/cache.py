"""
Layer 2 – 缓存层
优先级：Redis（内存） → MongoDB（二级，Redis 不可用时兜底）

缓存只做加速，不影响正确性：后端超时、连接失败、数据损坏一律视为未命中，
写入失败直接丢弃。每次后端往返都有超时上限。
"""

import asyncio
import hashlib
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from equilibrio_service.config import settings
from equilibrio_service.db import get_mongo_db, get_redis
from equilibrio_service.errors import CacheUnavailableError

logger = logging.getLogger(__name__)

_MAX_KEY_LEN = 200


def _make_key(namespace: str, *parts: str) -> str:
    """生成规范化缓存键"""
    raw = ":".join([namespace] + [str(p) for p in parts])
    if len(raw) > _MAX_KEY_LEN:
        raw = namespace + ":" + hashlib.md5(raw.encode()).hexdigest()
    return raw


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


class CacheLayer:
    """两级缓存层，后端连接通过获取函数注入"""

    def __init__(
        self,
        redis_getter: Callable[[], Any] = get_redis,
        mongo_getter: Callable[[], Any] = get_mongo_db,
        timeout: Optional[float] = None,
        collection: Optional[str] = None,
    ):
        self._redis = redis_getter
        self._mongo = mongo_getter
        self._timeout = settings.CACHE_OP_TIMEOUT if timeout is None else timeout
        self._collection = collection or settings.CACHE_COLLECTION

    async def _call(self, backend: str, operation: str, awaitable: Awaitable) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise CacheUnavailableError(backend, operation, "timeout") from exc
        except Exception as exc:
            raise CacheUnavailableError(backend, operation, str(exc)) from exc

    # ── 读 ────────────────────────────────────────────────

    async def get(self, namespace: str, *parts: str) -> Optional[Any]:
        key = _make_key(namespace, *parts)

        # L1: Redis
        redis = self._redis()
        if redis is not None:
            try:
                raw = await self._call("redis", "get", redis.get(key))
                if raw:
                    value = json.loads(raw)
                    logger.debug(f"缓存命中（Redis）: {key}")
                    return value
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}，按未命中处理")
            except ValueError as exc:
                logger.warning(f"⚠️ Redis 缓存内容损坏: {key}: {exc}")

        # L2: MongoDB
        db = self._mongo()
        if db is not None:
            coll = db[self._collection]
            try:
                doc = await self._call("mongodb", "find", coll.find_one({"key": key}))
                if doc:
                    expires_at = doc.get("expires_at")
                    if expires_at and expires_at < _now():
                        await self._call("mongodb", "delete", coll.delete_one({"key": key}))
                    else:
                        logger.debug(f"缓存命中（MongoDB）: {key}")
                        return doc.get("value")
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}，按未命中处理")

        logger.debug(f"缓存未命中: {key}")
        return None

    async def exists(self, namespace: str, *parts: str) -> bool:
        key = _make_key(namespace, *parts)
        redis = self._redis()
        if redis is not None:
            try:
                if await self._call("redis", "exists", redis.exists(key)):
                    return True
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}")

        db = self._mongo()
        if db is not None:
            try:
                doc = await self._call(
                    "mongodb", "find", db[self._collection].find_one({"key": key})
                )
                if doc:
                    expires_at = doc.get("expires_at")
                    return not (expires_at and expires_at < _now())
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}")
        return False

    # ── 写 ────────────────────────────────────────────────

    async def set(
        self,
        value: Any,
        namespace: str,
        *parts: str,
        ttl: int = None,
    ) -> None:
        if ttl is None:
            ttl = settings.STOCK_LIST_CACHE_TTL
        key = _make_key(namespace, *parts)

        # L1: Redis
        redis = self._redis()
        if redis is not None:
            try:
                serialized = json.dumps(value, ensure_ascii=False, default=str)
                await self._call("redis", "setex", redis.setex(key, ttl, serialized))
                logger.debug(f"缓存写入（Redis）: {key} ttl={ttl}s")
                return
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}")

        # L2: MongoDB
        db = self._mongo()
        if db is not None:
            try:
                expires_at = _now() + timedelta(seconds=ttl)
                await self._call(
                    "mongodb",
                    "upsert",
                    db[self._collection].update_one(
                        {"key": key},
                        {"$set": {"key": key, "value": value, "expires_at": expires_at}},
                        upsert=True,
                    ),
                )
                logger.debug(f"缓存写入（MongoDB）: {key} ttl={ttl}s")
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}，本次结果不缓存")

    async def delete(self, namespace: str, *parts: str) -> None:
        key = _make_key(namespace, *parts)
        redis = self._redis()
        if redis is not None:
            try:
                await self._call("redis", "delete", redis.delete(key))
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}")
        db = self._mongo()
        if db is not None:
            try:
                await self._call(
                    "mongodb", "delete", db[self._collection].delete_one({"key": key})
                )
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}")

    async def flush(self) -> Dict[str, str]:
        """清空全部缓存，返回各后端执行结果"""
        result = {"redis": "disabled", "mongodb": "disabled"}
        redis = self._redis()
        if redis is not None:
            try:
                await self._call("redis", "flushdb", redis.flushdb())
                result["redis"] = "flushed"
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}")
                result["redis"] = "error"
        db = self._mongo()
        if db is not None:
            try:
                await self._call(
                    "mongodb", "delete_many", db[self._collection].delete_many({})
                )
                result["mongodb"] = "flushed"
            except CacheUnavailableError as exc:
                logger.warning(f"⚠️ {exc.message}")
                result["mongodb"] = "error"
        logger.info(f"🔄 缓存已清空: {result}")
        return result

    async def stats(self) -> dict:
        """返回各缓存后端统计信息"""
        result: dict = {}
        redis = self._redis()
        if redis is not None:
            try:
                keys = await self._call("redis", "dbsize", redis.dbsize())
                result["redis"] = {"keys": keys, "status": "healthy"}
            except CacheUnavailableError as exc:
                result["redis"] = {"status": "error", "error": exc.message}
        else:
            result["redis"] = {"status": "disabled"}

        db = self._mongo()
        if db is not None:
            try:
                count = await self._call(
                    "mongodb", "count", db[self._collection].count_documents({})
                )
                result["mongodb"] = {"documents": count, "status": "healthy"}
            except CacheUnavailableError as exc:
                result["mongodb"] = {"status": "error", "error": exc.message}
        else:
            result["mongodb"] = {"status": "disabled"}

        return result


# ── 模块级别单例 ──────────────────────────────────────────
_cache: Optional[CacheLayer] = None


def get_cache_layer() -> CacheLayer:
    global _cache
    if _cache is None:
        _cache = CacheLayer()
    return _cache
