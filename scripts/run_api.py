#!/usr/bin/env python3
"""
Start the provisioning API server.
"""
import os
import sys
from pathlib import Path

# project root on the path when run as `python scripts/run_api.py`
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "api.main:app",
        host=os.environ.get("PROVISIONER_API_HOST", "127.0.0.1"),
        port=int(os.environ.get("PROVISIONER_API_PORT", "8000")),
        reload=os.environ.get("PROVISIONER_API_RELOAD", "") == "1",
    )
