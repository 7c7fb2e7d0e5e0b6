"""
Entry point for the gallery API server.

Usage:
    python run_api.py                    # Development (auto-reload)
    python run_api.py --production       # Production mode
    python run_api.py --rebuild-lookup   # Rebuild photo_people, then exit

Or directly with uvicorn:
    uvicorn api:create_app --factory --reload --port 5000
"""

import os
import sys
import argparse
import logging

# Ensure the script's directory is in Python path for local imports
_script_dir = os.path.dirname(os.path.abspath(__file__))
if _script_dir not in sys.path:
    sys.path.insert(0, _script_dir)


def main():
    parser = argparse.ArgumentParser(description='Gallery API Server')
    parser.add_argument('--port', type=int, default=int(os.environ.get('PORT', 5000)),
                        help='Port to listen on (default: 5000)')
    parser.add_argument('--host', default='0.0.0.0', help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--production', action='store_true', help='Run in production mode')
    parser.add_argument('--workers', type=int, default=1, help='Number of workers (production)')
    parser.add_argument('--log-level', default=os.environ.get('LOG_LEVEL', 'INFO'),
                        help='Logging level (default: INFO)')
    parser.add_argument('--rebuild-lookup', action='store_true',
                        help='Rebuild the photo_people lookup table and exit')
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.rebuild_lookup:
        from db import DEFAULT_DB_PATH, init_database, rebuild_people_lookup
        init_database(DEFAULT_DB_PATH)
        rebuild_people_lookup(DEFAULT_DB_PATH, show_progress=True)
        return

    import uvicorn

    if args.production:
        uvicorn.run(
            "api:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            workers=args.workers,
            log_level=args.log_level.lower(),
        )
    else:
        uvicorn.run(
            "api:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=True,
            reload_dirs=[_script_dir],
            log_level=args.log_level.lower(),
        )


if __name__ == '__main__':
    main()
