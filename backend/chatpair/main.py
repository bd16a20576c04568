from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from chatpair.core.config import get_settings
from chatpair.core.database import engine, Base
from chatpair.core.exceptions import ChatPairError, UnauthenticatedError
from chatpair import models  # ensure models are registered with SQLAlchemy
from chatpair.routers import auth, chat_codes, chat_requests
from chatpair.utils.logger import get_logger

logger = get_logger("http")

settings = get_settings()

app = FastAPI(
    title="Chat Pair API",
    description="Share short numeric codes and turn them into chat connection requests",
    version="0.1.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {e}")
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
    logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
    return response

@app.exception_handler(ChatPairError)
async def chat_pair_error_handler(request: Request, exc: ChatPairError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )

@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

app.include_router(auth.router)
app.include_router(chat_codes.router)
app.include_router(chat_requests.router)

@app.get("/")
async def root():
    return {"message": "Welcome to Chat Pair API"}

@app.get("/health")
async def health_check():
    return {"status": "ok"}
