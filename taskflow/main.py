from datetime import datetime, timezone
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from taskflow.config.settings import settings
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings.validate()

from taskflow.database.connection import create_tables  # noqa: E402
from taskflow.api.middleware import register_middleware  # noqa: E402
from taskflow.api.routes import auth, todos  # noqa: E402
from taskflow.config.email import email_service  # noqa: E402

# Create tables
try:
    create_tables()
    logger.info("Database tables created/verified successfully")
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise

# FastAPI application
app = FastAPI(
    title="Taskflow API",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
)

register_middleware(app)

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(todos.router, prefix="/api")

@app.on_event("startup")
def check_email_service():
    logger.info("Verifying email connection...")
    if email_service.verify_connection():
        logger.info("Email service is ready")
    else:
        logger.error("Email service is not configured properly")

@app.get("/api/health", tags=["Health"])
def health_check():
    """
    Liveness check
    """
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# Run the application
if __name__ == "__main__":
    import uvicorn
    print("Starting Taskflow API server...")
    print("API Documentation will be available at: http://127.0.0.1:8000/docs")
    uvicorn.run("taskflow.main:app", host="127.0.0.1", port=8000, reload=True)
