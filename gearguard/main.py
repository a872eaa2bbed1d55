from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from gearguard.core.config import settings
from gearguard.database.database_service import DatabaseService
from gearguard.database.firestore_client import FirestoreConnection
from gearguard.database.maintenance_repository import FirestoreMaintenanceRepository

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Gear Guard API",
    description="Equipment, maintenance teams and maintenance request workflow",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Connect to Firestore and build the repository shared by all requests"""
    logger.info(f"Starting Gear Guard API ({settings.ENVIRONMENT})")
    connection = FirestoreConnection(settings)
    if connection.initialize():
        logger.info(f"Firebase status: {connection.status()}")
    else:
        logger.warning("Firebase initialization failed - store calls will report the database as unreachable")

    app.state.connection = connection
    app.state.repository = FirestoreMaintenanceRepository(
        DatabaseService(connection, timeout=settings.STORE_TIMEOUT_SECONDS),
        lookup_timeout=settings.STORE_LOOKUP_TIMEOUT_SECONDS,
    )


@app.on_event("shutdown")
async def shutdown_event():
    connection = getattr(app.state, "connection", None)
    if connection is not None:
        connection.close()
    logger.info("Gear Guard API stopped")


def safe_include_router(router_module_path: str, router_name: str = "router"):
    """Safely include a router with error handling"""
    try:
        module = __import__(router_module_path, fromlist=[router_name])
        router = getattr(module, router_name)
        app.include_router(router)
        logger.info(f"Included {router_module_path}")
        return True
    except Exception as e:
        logger.error(f"Failed to include {router_module_path}: {str(e)}", exc_info=True)
        return False


for module_path in (
    "gearguard.routers.equipment",
    "gearguard.routers.teams",
    "gearguard.routers.maintenance_requests",
):
    safe_include_router(module_path)


@app.get("/")
async def root():
    return {"message": "Gear Guard API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    connection = getattr(app.state, "connection", None)
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "firebase": connection.status() if connection is not None else {"available": False},
    }
