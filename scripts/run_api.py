"""
Serve the schedule maker API with uvicorn.
"""

import argparse
import os
import sys

import uvicorn

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schedulemaker.core.config import LOG_LEVEL


def main():
    parser = argparse.ArgumentParser(description="Run the League Schedule Maker API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args()

    print("=" * 60)
    print("League Schedule Maker API Server")
    print("=" * 60)
    print(f"Listening on http://{args.host}:{args.port}")
    print(f"Sessions: http://localhost:{args.port}/api/sessions")
    print(f"Docs:     http://localhost:{args.port}/docs")
    print("=" * 60)

    uvicorn.run(
        "schedulemaker.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
