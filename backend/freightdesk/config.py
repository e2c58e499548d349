# backend/freightdesk/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the instance folder by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///freightdesk.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Voucher numbers are exported to AMIS as PREFIX + zero-padded digits
    DOC_NO_WIDTH = int(os.environ.get("DOC_NO_WIDTH", "5"))

    # Amounts are VND; differences at or below this are rounding noise
    PAYMENT_TOLERANCE = float(os.environ.get("PAYMENT_TOLERANCE", "1"))

    # VND per USD for the yearly profit report
    EXCHANGE_RATE = float(os.environ.get("EXCHANGE_RATE", "23500"))

    JSON_SORT_KEYS = False
