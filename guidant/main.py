# guidant/main.py
import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from guidant.api import auth, booking, notification, payment, session, session_request, users
from guidant.config import settings
from guidant.database import Base, engine
from guidant.exceptions import (
    LifecycleError,
    generic_exception_handler,
    http_exception_handler,
    lifecycle_exception_handler,
    validation_exception_handler,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create database tables
Base.metadata.create_all(bind=engine)

# Initialize FastAPI app
app = FastAPI(title="Guidant API", debug=settings.DEBUG)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error rendering
app.add_exception_handler(LifecycleError, lifecycle_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# API routers
app.include_router(auth.router)             # /auth/*
app.include_router(users.router)            # /users/*
app.include_router(session_request.router)  # /session-requests/*
app.include_router(session.router)          # /sessions/*
app.include_router(payment.router)          # /payments/*
app.include_router(booking.router)          # /bookings/*
app.include_router(notification.router)     # /notifications/*


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "message": "Guidant API is running",
        "version": "1.0.0",
    }
