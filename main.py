from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from worktrack.config.settings import Settings
from worktrack.database import init_db
from worktrack.routers import auth, tasks, work_logs
from worktrack.services.scheduler import delivery_scheduler

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="Worktrack API")

# CORS configuration
origins = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Route registration
app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(work_logs.router)

# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Create tables and start the delivery scheduler when the application starts"""
    logger.info("Starting Worktrack API...")
    init_db()
    if Settings.SCHEDULER['enabled']:
        delivery_scheduler.start()

@app.on_event("shutdown")
async def shutdown_event():
    """Stop the delivery scheduler when the application shuts down"""
    logger.info("Shutting down Worktrack API...")
    delivery_scheduler.stop()

# Root route
@app.get("/")
def read_root():
    return {"message": "Worktrack API"}

@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/scheduler/status")
def get_scheduler_status():
    """Get scheduler status and job information"""
    return delivery_scheduler.get_scheduler_status()

@app.post("/scheduler/trigger/deliveries")
async def trigger_delivery_sweep():
    """Manually send deliveries left queued by a failed batch"""
    result = await delivery_scheduler.sweep_queued_deliveries()
    return {"message": "Delivery sweep finished", **result}
