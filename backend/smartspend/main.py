import logging

from dotenv import load_dotenv

# Load env vars before anything else
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from smartspend.core.config import settings
from smartspend.database import Base, engine
from smartspend.routers import (
    auth,
    budgets,
    categories,
    insights,
    predictions,
    subscriptions,
    tips,
    transactions,
    users,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
)


@app.on_event("startup")
def create_tables():
    Base.metadata.create_all(bind=engine)
    logger.info("SmartSpend API ready")


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Server error"})


app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth")
app.include_router(users.router, prefix=f"{settings.API_PREFIX}/users")
app.include_router(categories.router, prefix=f"{settings.API_PREFIX}/categories")
app.include_router(transactions.router, prefix=f"{settings.API_PREFIX}/transactions")
app.include_router(budgets.router, prefix=f"{settings.API_PREFIX}/budgets")
app.include_router(subscriptions.router, prefix=f"{settings.API_PREFIX}/subscriptions")
app.include_router(predictions.router, prefix=f"{settings.API_PREFIX}/predictions")
app.include_router(tips.router, prefix=f"{settings.API_PREFIX}/tips")
app.include_router(insights.router, prefix=f"{settings.API_PREFIX}/insights")


@app.get("/health")
def health():
    return {"status": "OK", "message": "SmartSpend API is running"}
