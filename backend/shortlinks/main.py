from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .database import engine, Base
from .api import admin, links, redirect
from .config import setup_logging

setup_logging()

# Create database tables
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    yield
    # Shutdown
    redirect.close_geo_locator()


# Initialize FastAPI app
app = FastAPI(
    title="Custom Short Links",
    description="Paid URL shortening with custom domains and click analytics",
    version="1.0.0",
    lifespan=lifespan
)

# Setup rate limiter
app.state.limiter = links.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(admin.router, prefix="/api")
app.include_router(links.router, prefix="/api", tags=["links"])
app.include_router(redirect.router, tags=["redirect"])


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "Custom Short Links"}


# Redirect endpoint (must be last to not conflict with other routes)
app.get("/{short_code}")(redirect.redirect_to_url)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
