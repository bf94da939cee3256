"""
FastAPI app entrypoint.

Restaurants near the venue + dinner groups (one group per restaurant, one group per person).
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load .env from backend/ before any app code
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from dinner_groups.api.routes import photos, restaurants
from dinner_groups.config import settings
from dinner_groups.core.errors import DinnerGroupsError, domain_error_to_http
from dinner_groups.db.session import SessionLocal
from dinner_groups.services.places.client import GooglePlacesClient
from dinner_groups.services.restaurants.cache import RestaurantCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    places_client = GooglePlacesClient()
    if not places_client.config.is_configured():
        logger.warning("GOOGLE_PLACES_API_KEY not set; restaurant searches will fail")
    app.state.places_client = places_client
    # Process-lifetime restaurant cache; owned here, never a module global
    app.state.restaurant_cache = RestaurantCache(
        places_client.get_nearby_restaurants,
        SessionLocal,
        ttl_seconds=settings.restaurant_cache_ttl_seconds,
        batch_size=settings.restaurant_upsert_batch_size,
        max_entries=settings.restaurant_cache_max_entries,
    )
    logger.info("Dinner groups backend ready")
    yield
    app.state.restaurant_cache.clear()


app = FastAPI(title="Dinner Groups", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the production frontend
_cors_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
if settings.cors_origins:
    _cors_origins.extend(o.strip() for o in settings.cors_origins.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DinnerGroupsError)
async def dinner_groups_error_handler(request: Request, exc: DinnerGroupsError):
    http_exc = domain_error_to_http(exc)
    if http_exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


app.include_router(restaurants.router, prefix="/restaurants", tags=["restaurants"])
app.include_router(photos.router, prefix="/resources", tags=["photos"])


@app.get("/", include_in_schema=False)
def root():
    return {"message": "Dinner Groups API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
