from collections.abc import Mapping

from flask import Flask
from flask_cors import CORS

from .config import Config
from .extensions import db
from .reminders import ReminderScheduler
from .routes import bp
from .routes_admin import bp_admin
from .routes_owner import bp_owner


def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)

    if config_object is None:
        app.config.from_object(Config)
        app.config.from_envvar("APP_SETTINGS", silent=True)
    elif isinstance(config_object, Mapping):
        app.config.from_object(Config)
        app.config.from_mapping(config_object)
    else:
        app.config.from_object(config_object)

    db.init_app(app)

    # Allow the web/mobile client to talk to the API
    CORS(app,
         origins=app.config["CORS_ORIGINS"],
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )

    app.register_blueprint(bp)
    app.register_blueprint(bp_owner)
    app.register_blueprint(bp_admin)

    if app.config.get("REMINDER_SWEEP_ENABLED"):
        scheduler = ReminderScheduler(app, interval=app.config["REMINDER_SWEEP_INTERVAL_SECONDS"])
        app.extensions["reminder_scheduler"] = scheduler
        scheduler.start()

    return app
