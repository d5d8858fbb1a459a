import os

from flask import Flask, send_file, current_app
from flask_swagger_ui import get_swaggerui_blueprint

from .config import config_by_name
from .extensions import db, migrate, jwt, enable_sqlite_transactions
from .api.v1 import v1_bp
from .errors import register_error_handlers
from .cli import register_cli


def create_app(config_name: str | None = None) -> Flask:
    config_name = config_name or os.getenv("FLASK_CONFIG", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # -------------------------------------------------
    # Extensions
    # -------------------------------------------------
    db.init_app(app)
    migrate.init_app(
        app,
        db,
        directory=os.path.join(os.path.dirname(app.root_path), "migrations"),
    )
    jwt.init_app(app)

    if (app.config.get("SQLALCHEMY_DATABASE_URI") or "").startswith("sqlite"):
        enable_sqlite_transactions(app)

    # -------------------------------------------------
    # API Blueprints
    # -------------------------------------------------
    app.register_blueprint(v1_bp, url_prefix="/api/v1")
    register_error_handlers(app)
    register_cli(app)

    # -------------------------------------------------
    # Serve OpenAPI YAML (public)
    # -------------------------------------------------
    @app.route("/openapi/ebook.yaml", methods=["GET"], endpoint="openapi_ebook")
    def serve_openapi():
        spec_path = os.path.join(
            current_app.root_path,
            "api",
            "v1",
            "ebook_openapi.yaml",
        )

        if not os.path.exists(spec_path):
            raise FileNotFoundError("ebook_openapi.yaml not found")

        return send_file(
            spec_path,
            mimetype="application/yaml",
            as_attachment=False,
        )

    # -------------------------------------------------
    # Swagger UI
    # -------------------------------------------------
    SWAGGER_URL = "/swagger"
    API_URL = "/openapi/ebook.yaml"

    swaggerui_blueprint = get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            "app_name": "Ebook API",
            "deepLinking": True,
            "persistAuthorization": True,
        },
    )

    app.register_blueprint(swaggerui_blueprint, url_prefix=SWAGGER_URL)

    return app
