from sqlalchemy.engine import Engine

from aquora.db.base import Base
import aquora.db.models  # noqa


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    from aquora.core.config import get_settings
    from aquora.db.session import create_db_engine

    init_db(create_db_engine(get_settings()))
