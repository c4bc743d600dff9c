from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config.database import engine, Base
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.catalog_service import models as catalog_models
from services.order_service import models as order_models

from services.catalog_service.router import router as catalog_router
from services.order_service.exceptions import CheckoutError
from services.order_service.router import checkout_error_handler, public_router, router as order_router

app = FastAPI(title="Creator Marketplace Checkout", version="1.0.0")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app)

# --- SECURITY SETUP ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(CheckoutError, checkout_error_handler)

app.include_router(public_router)
app.include_router(order_router)
app.include_router(catalog_router)

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
