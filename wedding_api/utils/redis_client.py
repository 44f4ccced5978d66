"""
Redis 客户端
"""
import redis.asyncio as redis


def create_redis_client(url: str) -> redis.Redis:
    """
    创建 Redis 客户端

    超时均有上限，KV 不可用时请求不会无限阻塞。
    """
    return redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=10,
        # 超时配置
        socket_timeout=5,
        socket_connect_timeout=5,
        # 健康检查
        health_check_interval=30,
    )
