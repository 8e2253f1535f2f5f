#!/usr/bin/env python
"""Start the stock sync service with port configuration from the environment."""
import os
import uvicorn

if __name__ == "__main__":
    # Get port from environment, default to 3000
    port = int(os.environ.get("PORT", 3000))

    print(f"Starting stock sync service on port {port}")

    uvicorn.run(
        "stock_sync.main:app",
        host="0.0.0.0",
        port=port,
        log_level="info"
    )
