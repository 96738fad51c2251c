# backend/main.py
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Local .env values for anything not already set in the environment
load_dotenv()

from config import settings
from database import init_db
from utils.errors import register_exception_handlers

# Router imports
from routes.account import router as account_router
from routes.users import router as users_router
from routes.sites import router as sites_router
from routes.groups import router as groups_router
from routes.shifts import router as shifts_router
from routes.schedules import router as schedules_router
from routes.logs import router as logs_router

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Initialization
init_db()

app = FastAPI(title="Inntrac API", version="1.0.0")

# CORS: the SPA dev server plus the deployed frontend
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Router registration
app.include_router(account_router)
app.include_router(users_router)
app.include_router(sites_router)
app.include_router(groups_router)
app.include_router(shifts_router)
app.include_router(schedules_router)
app.include_router(logs_router)

@app.get("/")
def read_root():
    return {"message": "Inntrac API is running"}
