"""
Serverless entry point for the CAFM Ticketing API
"""
import os

# Serverless functions are short-lived; log at WARNING unless overridden
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from mangum import Mangum  # noqa: E402

from cafm.infrastructure.database import init_database  # noqa: E402
from cafm.main import app  # noqa: E402

# Lifespan is disabled below, so the engine is created at import time
init_database()

# Lambda handler for ASGI app (disable lifespan for serverless)
handler = Mangum(app, lifespan="off")
