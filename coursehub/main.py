import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient

from coursehub.courses.app import setup_course_routes
from coursehub.courses.config import MONGO_URL, MONGO_DB_NAME, STORE_TIMEOUT_MS
from coursehub.courses.store import create_course_indexes

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="CourseHub Learning API")

# MongoDB Configuration
client = AsyncIOMotorClient(MONGO_URL, serverSelectionTimeoutMS=STORE_TIMEOUT_MS)
db = client[MONGO_DB_NAME]


@app.on_event("startup")
async def startup_event():
    await create_course_indexes(db)
    logger.info("Course system initialized")


@app.on_event("shutdown")
async def shutdown_event():
    client.close()


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== ROUTER REGISTRATION ====================
setup_course_routes(app)
# ============================================================


@app.get("/")
async def root():
    return {"message": "CourseHub Learning API running"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
