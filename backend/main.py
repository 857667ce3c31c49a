# backend/main.py
import logging
from pathlib import Path

from fastapi import FastAPI, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

load_dotenv()

from config import settings
from database import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("storefront")

# Router imports
from routes.auth import router as auth_router
from routes.customers import router as customers_router
from routes.category import router as category_router
from routes.products import router as products_router
from routes.checkout import router as checkout_router
from routes.orders import router as orders_router
from routes.contact import router as contact_router
from routes.reports import router as reports_router
from routes.logs import router as logs_router
from models.users import User
from utils.tokenJWT import get_current_user

# Initialisation
init_db()

app = FastAPI(title="Storefront API", version="1.0.0")

# Uploaded product images
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/public/images", StaticFiles(directory=settings.UPLOAD_DIR), name="images")

# CORS: the single frontend origin, cookies allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["Content-Type", "Authorization"],
    max_age=600,
)


# Error responses share one shape: {"message": ...}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    message = "Invalid request"
    if errors:
        first = errors[0]
        # Drop the "body"/"query"/"path" prefix from the location
        field = ".".join(str(part) for part in first.get("loc", [])[1:])
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return JSONResponse(status_code=400, content={"message": message, "errors": errors})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal Server Error"})


# Router registration
app.include_router(auth_router, prefix="/api")
app.include_router(customers_router, prefix="/api")
app.include_router(category_router, prefix="/api")
app.include_router(products_router, prefix="/api")
app.include_router(checkout_router, prefix="/api")
app.include_router(orders_router, prefix="/api")
app.include_router(contact_router, prefix="/api")
app.include_router(reports_router, prefix="/api")
app.include_router(logs_router, prefix="/api")


@app.get("/protected")
def protected(current_user: User = Depends(get_current_user)):
    return {"message": "Protected route"}


@app.get("/")
def read_root():
    return {"message": "Storefront API is running"}
