from __future__ import annotations

import importlib

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.log import get_logger, setup_logging
from .container import build_container
from .attendance.controller import register as register_attendance
from .staging.controller import register as register_staging


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    api_config = getattr(settings, "API_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["COMPANY_ID"] = getattr(settings, "COMPANY_ID", "")

    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    logger = get_logger(__name__)
    logger.info("settings=%s backend=%s", settings_module, api_config.get("base_url"))

    container = build_container(
        api_config=api_config,
        defaults={
            "start_time": getattr(settings, "DEFAULT_START_TIME", "09:00"),
            "end_time": getattr(settings, "DEFAULT_END_TIME", "18:00"),
        },
    )
    app.extensions["attendance_reconcile"] = container

    register_staging(app, container)
    register_attendance(app, container)

    return app
