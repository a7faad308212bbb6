from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config.logging_config import configure_logging
from ..data.validate_data import validate_data_dir
from .catalog_api import router as catalog_router
from .state import settings

configure_logging(settings.log_level)

app = FastAPI(
    title="Price Quoting API",
    description="Price and tax quoting for quote and invoice lines",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include quoting and catalog API
app.include_router(catalog_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Price Quoting API Active"}


@app.get("/system/status")
async def get_status():
    report = validate_data_dir(settings.data_dir)
    return {
        "engine_active": True,
        "data_dir": str(settings.data_dir),
        "data_status": report["status"],
        "files": report["files"],
        "errors": report["errors"],
        "warnings": report["warnings"],
    }
