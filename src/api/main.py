"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.endpoints.diagnostics import router as diagnostics_router
from src.api.endpoints.generate_and_send import router as generate_and_send_router
from src.api.endpoints.slack_command import router as slack_command_router
from src.api.endpoints.slack_contract import router as slack_contract_router
from src.api.endpoints.slack_interact import router as slack_interact_router

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Contract Pipeline API"

# Initialize FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="Generates client contracts, sends them for e-signature, invoices and tracks them",
    version="2.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generate_and_send_router, prefix="/api")
app.include_router(slack_command_router, prefix="/api")
app.include_router(slack_interact_router, prefix="/api")
app.include_router(slack_contract_router, prefix="/api")
app.include_router(diagnostics_router, prefix="/api")


@app.get("/", tags=["Health"])
async def root():
    """Health check endpoint."""
    return {"service": SERVICE_NAME, "status": "healthy", "version": "2.0.0", "timestamp": datetime.now().isoformat()}


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}
