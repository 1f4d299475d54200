# Larder API Main Entry Point
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .routers.groceries import router as groceries_router
from .routers.grocery_sections import router as grocery_sections_router
from .routers.parse import router as parse_router
from .routers.ready import router as ready_router
from .routers.recipes import router as recipes_router
from .routers.units import router as units_router
from .settings import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("larder")

# Rate limiter (per-IP)
limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])

app = FastAPI(title="Larder API", version="0.1.0")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ready_router, prefix="/api", tags=["ready"])
app.include_router(parse_router, prefix="/api/parse", tags=["parse"])
app.include_router(groceries_router, prefix="/api/groceries", tags=["groceries"])
app.include_router(grocery_sections_router, prefix="/api/grocery-sections", tags=["groceries"])
app.include_router(units_router, prefix="/api/units", tags=["units"])
app.include_router(recipes_router, prefix="/api/recipes", tags=["recipes"])
