"""
Run the API server (port 3005 unless PORT is set).
Usage: python3 run.py   (from the project root)
"""
import uvicorn

from config import settings

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        # logging_setup already configured handlers
        log_config=None,
    )
