import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rangers_portal.core.config import get_settings
from rangers_portal.core.logging import configure_logging
from rangers_portal.routes.health import router as health_router
from rangers_portal.routes.catalog import router as catalog_router
from rangers_portal.routes.auth import router as auth_router
from rangers_portal.routes.applications import router as applications_router
from rangers_portal.routes.storage import router as storage_router
from rangers_portal.routes.rpc import router as rpc_router
from rangers_portal.routes.pages import router as pages_router

configure_logging()

app = FastAPI(title="Climate Rangers Application Portal")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_origin_regex=r"^http://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(catalog_router)
app.include_router(auth_router)
app.include_router(applications_router)
app.include_router(storage_router)
app.include_router(rpc_router)
app.include_router(pages_router)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
