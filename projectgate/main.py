"""
projectgate service entry point.

Registers the authentication/authorization providers and the project
directory on ``app.state`` at startup; endpoints look them up from there.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from projectgate.config import settings
from projectgate.api.v1.router import api_router
from projectgate.api.v1.helpers.authentication import JWTAuthenticationProvider
from projectgate.api.v1.helpers.auth_interface import PolicyAuthorizationProvider
from projectgate.api.v1.helpers.directory import SqlProjectDirectory
from logging import getLogger, Filter
import logging

logger = getLogger(__name__)
logger.setLevel(settings.log_level.upper())


class HealthCheckFilter(Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.getMessage().find("/health") == -1


logging.getLogger("uvicorn.access").addFilter(HealthCheckFilter())
logging.getLogger("projectgate").setLevel(settings.log_level.upper())


app = FastAPI(title=settings.app_name, debug=settings.debug, redirect_slashes=False)


@app.on_event("startup")
async def startup_event():
    logger.info("--- Starting projectgate ---")

    app.state.authentication_provider = JWTAuthenticationProvider()
    app.state.authorization_provider = PolicyAuthorizationProvider()
    app.state.project_directory = SqlProjectDirectory()

    logger.info("--- projectgate startup completed ---")


@app.on_event("shutdown")
async def shutdown_event():
    try:
        logger.info("--- Server shutting down! ---")

        from projectgate.db.session import dispose_engine

        await dispose_engine()
        logger.info("--- Database connections closed. ---")
    except Exception as e:
        logger.error(f"Warning: Error during shutdown: {e}")


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"message": "Welcome to Projectgate"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
