import time

from flask import Flask, g, jsonify, request

from notionlinks.api import api_bp
from notionlinks.config import Config, validate_config
from notionlinks.jobs.scheduler import start_scheduler
from notionlinks.services.sync import SyncCoordinator
from notionlinks.services.upstream import NotionFetcher


def create_app(config_object=Config, fetcher=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    validate_config(app.config)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    if fetcher is None:
        fetcher = NotionFetcher.from_config(app.config)
    app.extensions["notionlinks"] = SyncCoordinator.from_config(app.config, fetcher)

    app.register_blueprint(api_bp)

    @app.before_request
    def mark_request_start():
        g.request_started = time.monotonic()

    @app.after_request
    def log_request(response):
        started = g.get("request_started")
        if started is not None:
            app.logger.info(
                "%s %s - %s - %sms",
                request.method,
                request.path,
                response.status_code,
                int((time.monotonic() - started) * 1000),
            )
        return response

    @app.errorhandler(404)
    def not_found(error):
        if not request.path.startswith("/api/"):
            return error
        return (
            jsonify(
                {
                    "success": False,
                    "error": "NOT_FOUND",
                    "message": f"Path {request.path} not found",
                }
            ),
            404,
        )

    @app.cli.command("sync")
    def sync_command():
        coordinator = app.extensions["notionlinks"]
        result = coordinator.get_bookmarks(
            "cli",
            page_size=app.config["MAX_PAGE_SIZE"],
            force_refresh=True,
        )
        print(f"Synced {result.total_count} bookmarks from Notion.")

    start_scheduler(app)
    return app
