"""Entry point for running the FastAPI application."""

import logging
import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Read port from environment variable, default to 8000 for FastAPI server
    # Can be overridden: PORT=7860 python main.py
    port = int(os.getenv("PORT", "8000"))

    uvicorn.run(
        "conceptnotes.api.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=port,
        reload=os.getenv("RELOAD", "false").lower() in {"1", "true", "yes"},
    )
