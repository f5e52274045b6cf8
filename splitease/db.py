from sqlmodel import SQLModel, create_engine, Session

from splitease.config import config

connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(config.DATABASE_URL, echo=False, connect_args=connect_args)


def init_db(bind=None):
    # Import models so SQLModel.metadata includes them
    import splitease.models.user, splitease.models.group, splitease.models.expense
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session
