import logging
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    # --- Engine Defaults ---
    DEFAULT_THRESHOLD_METHOD = os.getenv("DEFAULT_THRESHOLD_METHOD", "dickhuth")
    DEFAULT_ZONE_MODEL = os.getenv("DEFAULT_ZONE_MODEL", "5-zones")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --- Stage Corrections ---
    # Stages shorter than (1 - tolerance) of the prescribed duration are corrected
    STAGE_COMPLETION_TOLERANCE = float(os.getenv("STAGE_COMPLETION_TOLERANCE", "0.1"))

    # --- Validation ---
    VALIDATION_LACTATE_FIELDS = ["lactate"]
    VALIDATION_LOAD_FIELDS = ["theoreticalLoad", "theoretical_load", "power", "load", "speed"]
    VALIDATION_HR_FIELDS = ["heartRate", "heart_rate", "hr"]
    VALIDATION_MAX_LACTATE = float(os.getenv("VALIDATION_MAX_LACTATE", "30.0"))
    VALIDATION_MAX_LOAD = float(os.getenv("VALIDATION_MAX_LOAD", "3000"))
    VALIDATION_MAX_HR = int(os.getenv("VALIDATION_MAX_HR", "250"))
    MIN_STAGE_RECORDS = int(os.getenv("MIN_STAGE_RECORDS", "1"))


def configure_logging(level=None):
    """Set the level of the engine's "LactateEngine" logger hierarchy."""
    logger = logging.getLogger("LactateEngine")
    logger.setLevel((level or Config.LOG_LEVEL).upper())
    return logger
