#!/usr/bin/env python3
"""
Production startup script for Render deployment
"""
import uvicorn
from microlearner.config import get_settings
from microlearner.main import app

if __name__ == "__main__":
    # Render sets PORT in the environment
    port = get_settings().port

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        log_level="info",
        access_log=True
    )
