#!/usr/bin/env python3
"""
BayPlan server launcher.

Puts the backend directory on the Python path (modules are imported as
top-level names) and starts uvicorn. Host/port come from BAYPLAN_HOST and
BAYPLAN_PORT.
"""

import sys
import os

# Add the backend directory to Python path
backend_dir = os.path.dirname(os.path.abspath(__file__))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)


def main() -> None:
    import uvicorn
    uvicorn.run(
        "api:app",
        host=os.environ.get("BAYPLAN_HOST", "127.0.0.1"),
        port=int(os.environ.get("BAYPLAN_PORT", "8000")),
        reload=os.environ.get("BAYPLAN_RELOAD", "true").lower() in ("true", "1", "yes"),
        reload_dirs=[backend_dir],
    )


if __name__ == "__main__":
    main()
