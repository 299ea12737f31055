from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from userauth.config import get_settings

settings = get_settings()

# check_same_thread=False because FastAPI runs sync handlers in a threadpool
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    pool_pre_ping=True,
    echo=settings.debug
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    Dependency that provides database session to route handlers.
    Ensures session is properly closed after request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Create all tables defined in models.
    Call this on application startup.
    """
    # Register models on Base.metadata
    import userauth.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
