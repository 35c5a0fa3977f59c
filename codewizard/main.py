"""Main FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codewizard import __version__
from codewizard.api.endpoints import router
from codewizard.utils.logging import setup_logging

setup_logging()

# Create FastAPI application
app = FastAPI(
    title="CodeWizard",
    description=(
        "A chat proxy for Groq-hosted models that looks up library documentation "
        "through Context7 and streams answers as server-sent events."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Chat",
            "description": (
                "Stream a model answer for the submitted conversation. "
                "Requires the caller's Groq API key."
            ),
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("codewizard.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
