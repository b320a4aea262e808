# backend/casinobar/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/casinobar.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///casinobar.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Every beer sells at the same fixed price (pesos)
    SELLING_PRICE = int(os.environ.get("SELLING_PRICE", "4000"))

    # Cash the drawer must hold regardless of sales (pesos)
    DRAWER_BASE_AMOUNT = int(os.environ.get("DRAWER_BASE_AMOUNT", "10000000"))

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "20"))

    # "clamp" caps over-stock sale entries, "reject" raises ValidationError
    SALE_LIMIT_POLICY = os.environ.get("SALE_LIMIT_POLICY", "clamp")

    # Calendar used for "today" and for daily report grouping
    VENUE_TIMEZONE = os.environ.get("VENUE_TIMEZONE", "America/Bogota")

    # "sql" keeps drafts in the shift_drafts table, "file" in DRAFT_DIR
    DRAFT_BACKEND = os.environ.get("DRAFT_BACKEND", "sql")
    DRAFT_DIR = os.environ.get("DRAFT_DIR", "drafts")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
