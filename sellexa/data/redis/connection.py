import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from sellexa.config import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, REDIS_DB
from sellexa.utils.logger import get_current_logger


class RedisConnection:
    """
    Redis connection manager with async connection pooling.

    The pool is created eagerly but no socket is opened until the first
    :meth:`get_client` call.
    """

    def __init__(
        self,
        host: str = REDIS_HOST,
        port: int = REDIS_PORT,
        password: str | None = REDIS_PASSWORD,
        db: int = REDIS_DB,
    ):
        logger = get_current_logger()
        try:
            self.pool = ConnectionPool(
                host=host,
                port=port,
                password=password if password else None,
                db=db,
                decode_responses=True,
                max_connections=20,
                socket_keepalive=True,
                socket_connect_timeout=5,
                retry_on_timeout=True
            )

            self.client = None
            logger.info(f"Redis connection pool initialized: {host}:{port}/{db}")

        except Exception as e:
            logger.error(f"Failed to initialize Redis connection pool: {e}")
            raise

    async def get_client(self) -> redis.Redis:
        """
        Get Redis async client instance, connecting on first use.

        Returns:
            Redis async client object
        """
        if self.client is None:
            self.client = redis.Redis(connection_pool=self.pool)
            await self.client.ping()
            get_current_logger().info("Redis async client connected")
        return self.client

    async def close(self):
        """Close Redis connection and release the pool."""
        if self.client:
            await self.client.aclose()
            self.client = None
        if self.pool:
            await self.pool.aclose()
        get_current_logger().info("Redis connection closed")


redis_connection = RedisConnection()
