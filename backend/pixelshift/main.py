"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pixelshift.api.routes import router
from pixelshift.config import CORS_ORIGINS, logger as config_logger
from pixelshift.conversion.workflow import get_workflow

logging.getLogger("uvicorn").setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    workflow = get_workflow()
    config_logger.info("Converter API started (previews in %s)", workflow.handles.directory)
    yield
    workflow.close()
    config_logger.info("Converter API shutting down")


app = FastAPI(
    title="Image Converter API",
    description="Load one image, convert it to PNG, JPEG, WebP or GIF, and download the result.",
    version="1.0.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if CORS_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    from pixelshift.config import HOST, PORT
    uvicorn.run("pixelshift.main:app", host=HOST, port=PORT, reload=True)
