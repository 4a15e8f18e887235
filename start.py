#!/usr/bin/env python3
"""
FutureMe Service Entrypoint

Picks the process to run from the SERVICE_TYPE environment variable.

SERVICE_TYPE values:
  - web (default): FastAPI server via uvicorn (runs the processor too,
    unless ENABLE_MESSAGE_PROCESSOR=false)
  - processor: the message processor on its own
"""

import os
import sys

SERVICE_TYPE = os.environ.get("SERVICE_TYPE", "web")
PORT = os.environ.get("PORT", "3001")

print("=" * 50)
print(f"FutureMe Service: {SERVICE_TYPE}")
print("=" * 50)

if SERVICE_TYPE == "web":
    print("Starting web server (uvicorn)...")
    # A single worker: each worker would run its own processor
    cmd = [
        "uvicorn", "futureme.api.main:app",
        "--host", "0.0.0.0",
        "--port", PORT,
        "--workers", "1",
    ]
elif SERVICE_TYPE == "processor":
    print("Starting message processor...")
    cmd = [sys.executable, "-m", "futureme.processor.run"]
else:
    print(f"ERROR: Unknown SERVICE_TYPE: {SERVICE_TYPE}")
    print("Valid values: web, processor")
    sys.exit(1)

print(f"Running: {' '.join(cmd)}")
print("=" * 50)

# Replace this process with the actual command
os.execvp(cmd[0], cmd)
