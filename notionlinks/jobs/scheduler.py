import os

from apscheduler.schedulers.background import BackgroundScheduler


scheduler = BackgroundScheduler()


def run_cache_sweep(app):
    coordinator = app.extensions["notionlinks"]
    removed = coordinator.cache.sweep()
    if removed:
        app.logger.info("Dropped %s expired cache entries", removed)


def run_rate_limit_sweep(app):
    coordinator = app.extensions["notionlinks"]
    removed = coordinator.rate_limiter.sweep()
    if removed:
        app.logger.debug("Dropped %s idle rate-limit windows", removed)


def start_scheduler(app):
    if not app.config.get("SCHEDULER_ENABLED", True):
        return
    if os.environ.get("WERKZEUG_RUN_MAIN") == "false":
        return

    if not scheduler.get_jobs():
        scheduler.add_job(
            run_cache_sweep,
            "interval",
            minutes=app.config["CACHE_SWEEP_INTERVAL_MINUTES"],
            kwargs={"app": app},
            id="cache_sweep",
            replace_existing=True,
        )
        scheduler.add_job(
            run_rate_limit_sweep,
            "interval",
            minutes=app.config["RATE_LIMIT_SWEEP_INTERVAL_MINUTES"],
            kwargs={"app": app},
            id="rate_limit_sweep",
            replace_existing=True,
        )
        scheduler.start()
