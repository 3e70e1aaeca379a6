from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv

from api.routes import sonar
from utils.logger import get_logger
from core.config import settings
from core.database import initialize_database

load_dotenv()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting sonar-analysis-runner")
    settings.validate()

    # Initialize database
    initialize_database()

    yield
    logger.info("Shutting down sonar-analysis-runner")


app = FastAPI(
    title="Sonar Analysis Runner",
    description="Run Sonar analysis as a CI build step and track dashboard links",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sonar.router, prefix="/api", tags=["sonar"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "sonar-analysis-runner"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
