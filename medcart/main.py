# medcart/main.py
import uvicorn

from medcart.api import create_app
from medcart.api.deps import get_catalog
from medcart.data.database import Base, engine
from medcart.utils.logging import get_logger
from medcart.utils.settings import CART_STORE

logger = get_logger(__name__)

# register models before create_all
from medcart.data.models.cart_snapshot import CartSnapshotModel  # noqa: E402,F401

if CART_STORE == "sql":
    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)

# fail fast on a broken promotion catalog
catalog = get_catalog()
logger.info(f"Loaded {len(catalog)} promotions")

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
