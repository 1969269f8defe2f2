from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .children.controller import register as register_children
from .common.logging_config import setup_logging
from .container import Container, build_container
from .core.exceptions import ConfigurationError, ConflictError, DomainError, NotFoundError, ValidationError
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .enrollments.controller import register as register_enrollments
from .inquiries.controller import register as register_inquiries
from .payments.controller import register as register_payments
from .rates.controller import register as register_rates
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    ConfigurationError: 422,
}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400)
        if status == 422:
            logger.error("Configuration error: %s", exc)
        return jsonify({"error": type(exc).__name__, "message": str(exc)}), status


def register_routes(app: Flask, container: Container) -> None:
    register_children(app, container)
    register_enrollments(app, container)
    register_attendance(app, container)
    register_rates(app, container)
    register_payments(app, container)
    register_reports(app, container)
    register_inquiries(app, container)


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_FORMAT", "text"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["DEFAULT_ORGANIZATION_ID"] = int(getattr(settings, "DEFAULT_ORGANIZATION_ID", 1))

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")

        container = build_container(
            db_config=db_config,
            default_organization_id=app.config["DEFAULT_ORGANIZATION_ID"],
            expiry_lookahead_days=int(getattr(settings, "EXPIRY_LOOKAHEAD_DAYS", 1)),
            sweep_item_timeout_seconds=float(getattr(settings, "SWEEP_ITEM_TIMEOUT_SECONDS", 30)),
        )

    register_error_handlers(app)
    register_routes(app, container)
    return app
