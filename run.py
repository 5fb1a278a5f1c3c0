import sys
import logging
import argparse

from notionlinks import create_app
from notionlinks.config import Config, ConfigError

log = logging.getLogger('werkzeug')
log.disabled = True
cli = sys.modules['flask.cli']
cli.show_server_banner = lambda *x: None


def main() -> None:
    p = argparse.ArgumentParser(prog="notionlinks")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=Config.PORT)
    args = p.parse_args()

    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        app = create_app()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"NotionLinks starting on http://{args.host}:{args.port}", flush=True)
    print(
        f"Rate limit: {app.config['RATE_LIMIT_MAX_REQUESTS']} requests per "
        f"{app.config['RATE_LIMIT_WINDOW_SECONDS']:g}s",
        flush=True,
    )
    app.run(host=args.host, port=args.port, debug=False)

if __name__ == "__main__":
    main()
