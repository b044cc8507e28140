import ssl
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.engine import make_url
from sqlalchemy.pool import NullPool, StaticPool
from app.config import settings

DB_URL = settings.DATABASE_URL
if not DB_URL:
    raise RuntimeError("DATABASE_URL not set")


def build_engine(url: str):
    if url.startswith("postgresql+asyncpg"):
        # Create an SSLContext as recommended for asyncpg
        ssl_ctx = ssl.create_default_context()
        # Allow self-signed certs for development
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE
        return create_async_engine(
            url,
            poolclass=NullPool,  # Recommended for serverless/async environments
            connect_args={"ssl": ssl_ctx},
        )
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:"):
        # In-memory SQLite lives as long as its single connection
        return create_async_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, poolclass=NullPool)


# Create a single, shared async engine for the application
engine = build_engine(DB_URL)

# Create a session factory to generate new sessions
AsyncSessionFactory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Dependency for getting a session in FastAPI routes
async def get_session() -> AsyncSession:
    async with AsyncSessionFactory() as session:
        yield session
