from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from sqlalchemy import event

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()


def enable_sqlite_transactions(app):
    """
    pysqlite defers BEGIN until the first write and breaks SAVEPOINT.
    Hand transaction control back to SQLAlchemy so SQLite behaves like
    the production database for row locks and nested inserts.
    """
    with app.app_context():
        engine = db.engine

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_autobegin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")
