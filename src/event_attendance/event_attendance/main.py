from __future__ import annotations

import importlib
import logging
from datetime import date
from types import SimpleNamespace
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.datetime_utils import Clock
from .container import build_container
from .seed import seed_demo_events, seed_demo_profiles
from .sessions.controller import register as register_sessions
from .storage.store import DurableStore

logger = logging.getLogger(__name__)


def load_settings(overrides: Optional[dict] = None) -> SimpleNamespace:
    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    values = {name: getattr(settings, name) for name in dir(settings) if name.isupper()}
    values.update(overrides or {})
    values["SETTINGS_MODULE"] = settings_module
    return SimpleNamespace(**values)


def create_app(
    overrides: Optional[dict] = None,
    *,
    store: Optional[DurableStore] = None,
    clock: Optional[Clock] = None,
) -> Flask:
    load_dotenv(override=False)
    settings = load_settings(overrides)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    container = build_container(settings=settings, store=store, clock=clock)

    restored = container.attendance_service.load_snapshot()
    if bool(getattr(settings, "SEED_DEMO_DATA", False)):
        seed_demo_profiles(container)
        if not restored:
            seed_demo_events(container, today=date.today())
        logger.info("Demo data seeded (events=%s)", not restored)
    container.session_manager.restore_session()

    logger.info(
        "event-attendance ready (settings=%s, store=%s, restored=%s)",
        settings.SETTINGS_MODULE,
        type(container.store).__name__,
        restored,
    )

    app.extensions["event_attendance"] = container

    register_sessions(app, container)
    register_attendance(app, container)

    return app
