#!/usr/bin/env python3
"""
Billing Server Entry Point
"""

import os
import uvicorn
from billing.config import Settings
from billing.server import create_app

if __name__ == "__main__":
    settings = Settings.from_env()
    settings.validate_required()

    port = int(os.getenv('PORT', 4242))
    host = os.getenv('HOST', '0.0.0.0')

    print(f"Starting billing server on {host}:{port}")

    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level="info",
        access_log=True
    )
