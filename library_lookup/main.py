import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from library_lookup.config import FRONTEND_ORIGINS, LOG_LEVEL
from library_lookup.database import Base, engine
from library_lookup.routes import books, users, ratings, comments

# 🔒 Rate limiting setup
from library_lookup.limiter import limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Library Lookup API")

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


# Every error leaves the API as {"error": "..."}
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"error": "Too many requests. Please slow down."}
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid input"
    if errors:
        message = str(errors[0].get("msg", message))
        # pydantic prefixes messages raised from our own validators
        message = message.removeprefix("Value error, ")
    return JSONResponse(status_code=400, content={"error": message})


# Registered before CORSMiddleware so 500s still carry CORS headers
@app.middleware("http")
async def catch_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Something broke!"})


app.add_middleware(
    CORSMiddleware,
    allow_origins=FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.router)
app.include_router(books.router)
app.include_router(ratings.router)
app.include_router(comments.router)


@app.get("/")
async def root():
    return {"message": "Library Lookup API is running!"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.on_event("startup")
async def on_startup():
    # Tiny retry so a momentary DB disconnect doesn't crash the app.
    for attempt in range(2):
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            break
        except Exception as e:
            if attempt == 0:
                logger.warning("DB init failed, retrying once: %r", e)
                await asyncio.sleep(0.5)
            else:
                # Tables should already exist from previous runs.
                logger.error("Skipping DB init due to error: %r", e)
