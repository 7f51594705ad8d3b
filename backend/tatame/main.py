import logging
import os
import subprocess
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tatame.config import CORS_ORIGINS
from tatame.database import engine, init_db
from tatame.db_schema_patch import ensure_category_columns, ensure_event_columns
from tatame.routes import brackets

logger = logging.getLogger(__name__)

app = FastAPI(title="Tatame Brackets API")


# Get build info
def get_build_info():
    """Get git commit hash or build timestamp"""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=os.path.dirname(os.path.dirname(__file__)),
            capture_output=True,
            text=True,
            timeout=2,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        pass

    # Fallback to build timestamp
    return datetime.now().strftime("%Y%m%d-%H%M%S")


BUILD_HASH = get_build_info()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Bracket management (organizer-only)
app.include_router(brackets.router, prefix="/api", tags=["brackets"])


@app.on_event("startup")
def on_startup():
    init_db()  # Use centralized init_db() which imports models and creates tables
    ensure_event_columns(engine)
    ensure_category_columns(engine)
    logger.info("Tatame Brackets API started (build %s)", BUILD_HASH)


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify which code is running"""
    return {"app_name": "Tatame Brackets API", "build_hash": BUILD_HASH, "status": "healthy"}
