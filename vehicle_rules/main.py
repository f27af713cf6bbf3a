import time
from fastapi import FastAPI, Request
from .routes.rules import router as rules_router
from .routes.audit import router as audit_router
from .utils.logging import logger

app = FastAPI(title="Vehicle Rules",
              description="Vehicle validation rules engine",
    version="0.1.0",
    docs_url="/docs",          # Swagger UI
    redoc_url="/redoc",        # ReDoc
    openapi_url="/openapi.json")

app.include_router(rules_router)
app.include_router(audit_router)

@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s %s in %dms", request.method, request.url.path, response.status_code, ms)
    return response

@app.get("/health")
def health():
    return {"ok": True}
