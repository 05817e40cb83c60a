from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.config import settings
from app.exceptions import setup_exception_handlers
from app.utils.timezone import get_local_now
from app.api.v1 import (
    auth,
    business,
    inventory,
    purchase_orders,
    metrics,
    dashboard,
    reports,
    waste
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Restaurant inventory, purchase orders and waste reporting",
    version="1.0.0",
    debug=settings.DEBUG
)

setup_exception_handlers(app)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_headers=["*"],
    allow_origins=settings.allowed_origins_list,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
)


# Health check
@app.get("/")
def read_root():
    return {
        "message": f"{settings.APP_NAME} is running",
        "status": "healthy",
        "timestamp": get_local_now().isoformat()
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}


# Include routers
app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Authentication"])
app.include_router(business.router, prefix=f"{settings.API_PREFIX}/business", tags=["Business"])
app.include_router(inventory.router, prefix=f"{settings.API_PREFIX}/inventory", tags=["Inventory"])
app.include_router(purchase_orders.router, prefix=f"{settings.API_PREFIX}/orders", tags=["Purchase Orders"])
app.include_router(metrics.router, prefix=f"{settings.API_PREFIX}/metrics", tags=["Metrics"])
app.include_router(dashboard.router, prefix=f"{settings.API_PREFIX}/dashboard", tags=["Dashboard"])
app.include_router(reports.router, prefix=f"{settings.API_PREFIX}/reports", tags=["Reports"])
app.include_router(waste.router, prefix=f"{settings.API_PREFIX}/waste", tags=["Waste"])

logger.info(f"{settings.APP_NAME} started ({settings.APP_ENV})")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
