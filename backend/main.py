import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config import settings
from core.limiter import limiter
from database import connect_db, close_db

# Routers
from routers import auth, pricing, admin, bookings, service_packages, vehicles
from services.settings_service import get_settings_service

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_db()
    policy = await get_settings_service().initialize()
    logger.info(
        "Politique tarifaire chargée : %d palier(s), %d majoration(s) horaire(s), plafond %.2f",
        len(policy.distance_tiers), len(policy.time_surcharges), policy.max_fee,
    )
    logger.info("Limo Booking API started")
    yield
    # Shutdown
    await close_db()
    logger.info("Limo Booking API stopped")


app = FastAPI(
    title="Limo Booking API",
    description="Réservation de limousines : site client, espace chauffeur, back-office",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else [settings.SITE_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers : publics (sans auth ou auth optionnelle)
app.include_router(pricing.router, prefix="/api/pricing", tags=["Pricing"])
app.include_router(service_packages.router, prefix="/api/service-packages", tags=["Service Packages"])
app.include_router(vehicles.router, prefix="/api/vehicles", tags=["Vehicles"])
app.include_router(bookings.router, prefix="/api/bookings", tags=["Bookings"])

# Routers : avec auth
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "app": "limo-booking", "version": "1.0.0"}
