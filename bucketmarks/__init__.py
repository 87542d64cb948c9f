from flask import Flask, jsonify

from bucketmarks.api import api_bp
from bucketmarks.config import Config
from bucketmarks.extensions import db, login_manager, migrate
from bucketmarks.jobs.scheduler import purge_expired_sessions, start_scheduler


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    app.register_blueprint(api_bp)

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({"error": "method not allowed"}), 405

    @app.cli.command("init-db")
    def init_db_command():
        db.create_all()
        print("Initialized Bucketmarks database.")

    @app.cli.command("purge-sessions")
    def purge_sessions_command():
        removed = purge_expired_sessions(app)
        print(f"Removed {removed} expired sessions.")

    with app.app_context():
        db.create_all()

    start_scheduler(app)
    return app
