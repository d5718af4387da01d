import os
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import uvicorn

# Load .env
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

from database import check_connection
from routers import invoices_router, line_items_router, payments_router
from services.exceptions import ArithmeticInvariantViolation, BillingError

# App instance
app = FastAPI(title="Invoice Billing API")

# CORS
origins = [origin for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(invoices_router)
app.include_router(line_items_router)
app.include_router(payments_router)


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError):
    if isinstance(exc, ArithmeticInvariantViolation):
        logger.error("Invariant violation on %s %s: %s %s", request.method, request.url.path, exc.message, exc.details)
    else:
        logger.info("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.kind, "detail": exc.message})


@app.get("/health")
def health():
    connected = check_connection()
    return JSONResponse(
        status_code=200 if connected else 503,
        content={"status": "ok" if connected else "unavailable", "database": connected},
    )


# 500 Fallback Middleware
@app.middleware("http")
async def server_error_middleware(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "internal_error", "detail": "Internal server error"})

if __name__ == "__main__":
    port = int(os.getenv("PORT", 10000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
