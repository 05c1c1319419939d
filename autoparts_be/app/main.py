from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from app.config import get_settings
from app.errors import ConflictError, EmptyCartError, NotFoundError, ShopError, StoreError, ValidationError
from app.routers import blog, cart, catalog, orders, products

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="AutoParts Kenya API")

STATUS_BY_ERROR = (
    (EmptyCartError, 400),
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StoreError, 500),
)


@app.on_event("startup")
def on_startup():
    # Ensure all DB tables exist after all models are imported
    from app.models.base import Base, engine  # Base/engine single source
    import app.models.product  # register legacy catalog models
    import app.models.product_final  # register final catalog models
    import app.models.cart  # register Cart/CartItem models
    import app.models.order  # register Order/OrderItem models
    import app.models.blog  # register blog models
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables ready, catalog backend: {settings.CATALOG_BACKEND}")


@app.on_event("shutdown")
def on_shutdown():
    from app.models.base import engine
    engine.dispose()


@app.exception_handler(ShopError)
async def handle_shop_error(request: Request, exc: ShopError):
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        status_code = 500
    if status_code >= 500:
        # Detail was logged where it happened; never leak it
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=status_code, content={"detail": "Internal server error"})
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "header", "cookie")]
        field = ".".join(loc)
        messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"detail": "; ".join(messages) or "Invalid request"})


# CORS configuration for frontend
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[settings.SESSION_HEADER_NAME],
)

# Include routers
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(catalog.router, prefix="/api", tags=["catalog"])
app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(blog.router, prefix="/api/blog", tags=["blog"])


@app.get("/api/health", tags=["health"])
def health():
    return {"status": "ok"}


# --- Entry point for local runs ---
if __name__ == "__main__":
    import uvicorn, os
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=False)
