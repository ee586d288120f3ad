# ballotbox/__init__.py

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from werkzeug.middleware.proxy_fix import ProxyFix
import logging
import os

from ballotbox.config import Config

MIGRATIONS_DIR = os.path.join(os.path.dirname(__file__), 'database', 'migrations')

db = SQLAlchemy()  # Database ORM
migrate = Migrate()  # DB migrations (Alembic)


def create_store(app):
    """Build an ElectionStore bound to the current app's session, sinks and config."""
    from ballotbox.authentication.credentials import CredentialService
    from ballotbox.database.store import ElectionStore

    return ElectionStore(
        db.session,
        credentials=CredentialService(hash_secrets=app.config['HASH_ADMIN_SECRETS']),
        sinks=app.extensions.get('ballotbox.sinks', []),
        audit_origin=app.config['AUDIT_ORIGIN'],
    )


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Fix proxy headers when served behind a reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    db.init_app(app)
    migrate.init_app(app, db, directory=MIGRATIONS_DIR)

    # Ensure model modules are imported so SQLAlchemy metadata is populated
    # for Flask-Migrate / Alembic.
    from ballotbox.database import models  # noqa: F401
    from ballotbox.replication.sync_manager import build_sinks, SyncManager
    from ballotbox.replication.echo import echo
    from ballotbox.routes import api

    app.extensions['ballotbox.sinks'] = build_sinks(app.config)
    app.register_blueprint(api)
    app.register_blueprint(echo)

    if app.config['AUTO_INITIALIZE']:
        with app.app_context():
            create_store(app).open()

    if app.config['SYNC_INTERVAL_SECONDS'] > 0 and app.extensions['ballotbox.sinks']:
        def snapshot():
            with app.app_context():
                try:
                    return create_store(app).export_voting_data()
                finally:
                    db.session.remove()

        manager = SyncManager(snapshot, app.extensions['ballotbox.sinks'],
                              interval=app.config['SYNC_INTERVAL_SECONDS'])
        manager.start()
        app.extensions['ballotbox.sync_manager'] = manager

    return app
