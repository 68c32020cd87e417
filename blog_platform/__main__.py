"""
Command line entry point.

    python -m blog_platform serve [--host HOST] [--port PORT] [--reload]
    python -m blog_platform seed [--fixtures DIR]
"""

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

from blog_platform.config import Settings
from blog_platform.db.database import init_db, make_engine, make_session_factory
from blog_platform.fixtures import FIXTURES_DIR, load_fixture_posts
from blog_platform.main import configure_logging
from blog_platform.services.posts import import_fixture_posts

logger = logging.getLogger("blog_platform")


def serve(settings: Settings, args: argparse.Namespace) -> int:
    uvicorn.run(
        "blog_platform.main:create_app",
        factory=True,
        host=args.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def seed(settings: Settings, args: argparse.Namespace) -> int:
    configure_logging(settings)
    engine = make_engine(settings.sqlalchemy_url)
    init_db(engine)

    db = make_session_factory(engine)()
    try:
        created = import_fixture_posts(db, load_fixture_posts(args.fixtures))
    finally:
        db.close()

    print(f"Seeded {len(created)} post(s) into {settings.db_name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blog_platform", description="Blog platform API")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_parser = commands.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=None, help="Defaults to $PORT")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    serve_parser.set_defaults(handler=serve)

    seed_parser = commands.add_parser("seed", help="Load the sample posts into the database")
    seed_parser.add_argument("--fixtures", type=Path, default=FIXTURES_DIR)
    seed_parser.set_defaults(handler=seed)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.handler(Settings.from_env(), args)


if __name__ == "__main__":
    sys.exit(main())
