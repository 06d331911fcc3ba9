from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brodesk.api.router import api_router
from brodesk.core.config import get_settings
from brodesk.core.errors import register_exception_handlers
from brodesk.core.logging import configure_logging

settings = get_settings()
configure_logging(settings)

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    debug=settings.app_debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "BroDesk backend is running"}
