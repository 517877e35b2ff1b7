"""
Server Entry Point

Usage:
    Development:  inventory-insights --dev
    Production:   inventory-insights
    Gunicorn:     inventory-insights --gunicorn
"""

import argparse
import os
import subprocess

APP_PATH = "insight_engine.main:app"


def run_dev_server(port: int) -> None:
    """Run development server with auto-reload."""
    import uvicorn

    uvicorn.run(
        APP_PATH,
        host="0.0.0.0",
        port=port,
        reload=True,
        reload_dirs=["insight_engine"],
        log_level="debug",
        access_log=True,
    )


def run_prod_server(port: int) -> None:
    """Run production server with Uvicorn directly."""
    import uvicorn

    uvicorn.run(
        APP_PATH,
        host="0.0.0.0",
        port=port,
        workers=int(os.getenv("WORKERS", 4)),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        access_log=True,
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
    )


def run_gunicorn() -> None:
    """Run with Gunicorn using gunicorn.conf.py."""
    subprocess.run(["gunicorn", APP_PATH, "-c", "gunicorn.conf.py"], check=False)


def main() -> None:
    parser = argparse.ArgumentParser(description="Inventory Insights API Server")
    parser.add_argument("--dev", action="store_true", help="Run in development mode with auto-reload")
    parser.add_argument("--gunicorn", action="store_true", help="Run with Gunicorn (production)")
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", 8000)), help="Port to run on")
    args = parser.parse_args()

    if args.dev:
        run_dev_server(args.port)
    elif args.gunicorn:
        os.environ["BIND"] = f"0.0.0.0:{args.port}"
        run_gunicorn()
    else:
        run_prod_server(args.port)


if __name__ == "__main__":
    main()
