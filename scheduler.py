import click
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from sportstock import create_app
from sportstock.services.sweeper import sweep_all

SWEEP_JOB_ID = 'sweep-resolved-requests'


# --- SCHEDULED TASK ---
def sweep_resolved_requests(app):
    """
    Delete every approved/rejected request whose last update is older than the
    retention window (REQUEST_RETENTION_MINUTES). Run it from cron, or keep it
    alive with --loop.
    """
    with app.app_context():
        deleted = sweep_all()
        app.logger.info("Scheduled sweep finished: %d request(s) deleted", deleted)
        return deleted


def build_scheduler(app, scheduler=None):
    """Schedule the sweep every POLL_INTERVAL_SECONDS on ``scheduler``."""
    scheduler = scheduler or BlockingScheduler(timezone='UTC')
    interval = app.config.get('POLL_INTERVAL_SECONDS', 5)
    scheduler.add_job(
        sweep_resolved_requests,
        trigger=IntervalTrigger(seconds=interval),
        id=SWEEP_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        args=[app],
    )
    app.logger.info("Sweeping resolved requests every %s seconds", interval)
    return scheduler


@click.command()
@click.option('--loop', is_flag=True, help='Keep running, sweeping every POLL_INTERVAL_SECONDS.')
def main(loop):
    # The script loads the Flask app to reach the database.
    app = create_app()
    sweep_resolved_requests(app)
    if loop:
        scheduler = build_scheduler(app)
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            app.logger.info("Sweep scheduler stopped")


# --- SCRIPT ENTRY POINT ---
if __name__ == "__main__":
    main()
