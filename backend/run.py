"""
Run the document request API with uvicorn.

Usage:
    python run.py
    python run.py --reload          # Development mode with auto-reload
    python run.py --memory          # In-process store, no MongoDB needed
"""
import argparse
import os
import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the document request API server")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use the in-memory store and cache (data is lost on exit)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes (default: 1). Draft locks are per process."
    )

    args = parser.parse_args()

    if args.memory:
        os.environ["STORE_BACKEND"] = "memory"
        os.environ["CACHE_BACKEND"] = "memory"

    workers = 1 if args.reload or args.memory else args.workers

    print("Starting document request API server...")
    print(f"  Host: {args.host}")
    print(f"  Port: {args.port}")
    print(f"  Store: {'memory' if args.memory else os.environ.get('STORE_BACKEND', 'from settings')}")
    if workers > 1:
        print(f"  Workers: {workers} (same-owner saves are only serialized within one worker)")
    print()

    uvicorn.run(
        "docrequest.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers
    )


if __name__ == "__main__":
    main()
