import os

from apscheduler.schedulers.background import BackgroundScheduler

from bucketmarks.extensions import db
from bucketmarks.models import SessionToken, utcnow


scheduler = BackgroundScheduler()


def purge_expired_sessions(app) -> int:
    with app.app_context():
        try:
            removed = SessionToken.query.filter(
                SessionToken.expires_at <= utcnow()
            ).delete(synchronize_session=False)
            db.session.commit()
        except Exception as exc:
            db.session.rollback()
            app.logger.warning("Failed to purge expired sessions: %s", exc)
            return 0
        if removed:
            app.logger.info("Purged %s expired sessions", removed)
        return removed


def start_scheduler(app):
    if not app.config.get("SCHEDULER_ENABLED", True):
        return
    if os.environ.get("WERKZEUG_RUN_MAIN") == "false":
        return

    interval_minutes = app.config["SESSION_CLEANUP_INTERVAL_MINUTES"]
    if not scheduler.get_jobs():
        scheduler.add_job(
            purge_expired_sessions,
            "interval",
            minutes=interval_minutes,
            kwargs={"app": app},
            id="session_cleanup",
            replace_existing=True,
        )
        scheduler.start()
