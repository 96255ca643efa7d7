#!/usr/bin/env python3
"""Run the trace viewer web API."""

import argparse
import logging

from app import app

if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Trace viewer web API")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    print(f"Starting web server at http://localhost:{args.port}")
    app.run(debug=args.debug, host=args.host, port=args.port)
