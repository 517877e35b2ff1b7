#!/usr/bin/env python
"""
Production Server Entry Point

Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py

    Or with Gunicorn:
    gunicorn insight_engine.main:app -c gunicorn.conf.py
"""

from insight_engine.serve import main


if __name__ == "__main__":
    main()
