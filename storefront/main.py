# storefront/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

# import wszystkich modeli przed create_all
import storefront.data.models  # noqa: F401
from storefront.api.routers import admin, cart, catalog, checkout, health
from storefront.data.database import Base, SessionLocal, engine
from storefront.data.seed import seed_example_products
from storefront.repos.product_repo import ProductRepo
from storefront.services.category_cache import CategoryCache
from storefront.utils.settings import SEED_EXAMPLE_PRODUCTS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def init_db(cache: CategoryCache) -> None:
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise

    db = SessionLocal()
    try:
        if SEED_EXAMPLE_PRODUCTS:
            seed_example_products(db)
        cache.refresh(ProductRepo(db))
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(app.state.category_cache)
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    # cache kategorii nalezy do aplikacji, handlery dostaja go przez Depends
    app.state.category_cache = CategoryCache()

    # Include routers
    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(cart.router)
    app.include_router(checkout.router)
    app.include_router(admin.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
