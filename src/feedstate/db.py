from sqlmodel import create_engine
from feedstate.catalog import TABLES, create_tables
from feedstate.config import settings
from feedstate.gateway import SqlGatewayFactory
from feedstate.logging import logger

DATA_DIR = settings.DATA_DIR
DB_URL = settings.db_url

engine = create_engine(DB_URL, echo=False)

def init_db():
    if not DATA_DIR.exists():
        DATA_DIR.mkdir(parents=True, exist_ok=True)

    logger.info(f"Initializing database at {DB_URL}")
    create_tables(engine, TABLES)

def get_factory() -> SqlGatewayFactory:
    return SqlGatewayFactory(engine)
