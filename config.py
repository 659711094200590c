# config.py
import os
from dotenv import load_dotenv

# Load environment variables from .env file.
load_dotenv()

_config = None


def _env_bool(name, default):
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "on", "yes")


def default_config():
    """
    Returns the built-in defaults without consulting the environment.
    """
    return {
        # General Settings
        "DEBUG_MODE": False,
        "QUIET": True,
        "TARGET_DIR": "/output",
        "CAMERA_ID": 0,
        "TEXT_EVENT": "%Y%m%d%H%M%S",

        # Picture Settings
        "PICTURE_OUTPUT": True,
        "PICTURE_OUTPUT_MOTION": False,
        "PICTURE_TYPE": "jpeg",
        "PICTURE_QUALITY": 75,
        "PICTURE_FILENAME": "%v-%Y%m%d%H%M%S-%q",
        "SNAPSHOT_FILENAME": "%v-%Y%m%d%H%M%S-snapshot",
        "MOVIE_FILENAME": "%v-%Y%m%d%H%M%S",

        # External Commands
        "ON_PICTURE_SAVE": "",
        "ON_MOVIE_START": "",
        "ON_MOVIE_END": "",
        "ON_MOTION_DETECTED": "",
        "ON_AREA_DETECTED": "",
        "ON_EVENT_START": "",
        "ON_EVENT_END": "",
        "ON_CAMERA_LOST": "",

        # External Pipe
        "USE_EXTPIPE": False,
        "EXTPIPE": "",
        "EXTPIPE_SECONDARY": False,

        # Live Stream
        "STREAM_PORT": 0,
        "STREAM_SECONDARY": False,
        "SECONDARY_TYPE": "raw",

        # Database
        "DATABASE_TYPE": "",
        "DATABASE_HOST": "localhost",
        "DATABASE_PORT": 0,
        "DATABASE_USER": "",
        "DATABASE_PASSWORD": "",
        "DATABASE_DBNAME": "",
        "SQLITE3_DB": "",
        "SQL_QUERY": (
            "insert into security(camera, filename, frame, file_type, time_stamp, "
            "event_time_stamp) values('%t', '%f', '%q', '%{filetype}', "
            "'%Y-%m-%d %T', '%C')"
        ),
        "SQL_LOG_PICTURE": True,
        "SQL_LOG_SNAPSHOT": True,
        "SQL_LOG_MOTION": False,
        "SQL_LOG_MOVIE": False,
        "SQL_LOG_TIMELAPSE": False,
    }


def load_config():
    """
    Loads configuration from environment variables and returns a dictionary.
    """
    defaults = default_config()
    config = {
        # General Settings
        "DEBUG_MODE": _env_bool("DEBUG_MODE", False),
        "QUIET": _env_bool("QUIET", True),
        "TARGET_DIR": os.getenv("TARGET_DIR", defaults["TARGET_DIR"]),
        "CAMERA_ID": int(os.getenv("CAMERA_ID", 0)),
        "TEXT_EVENT": os.getenv("TEXT_EVENT", defaults["TEXT_EVENT"]),

        # Picture Settings
        "PICTURE_OUTPUT": _env_bool("PICTURE_OUTPUT", True),
        "PICTURE_OUTPUT_MOTION": _env_bool("PICTURE_OUTPUT_MOTION", False),
        "PICTURE_TYPE": os.getenv("PICTURE_TYPE", "jpeg").lower(),
        "PICTURE_QUALITY": int(os.getenv("PICTURE_QUALITY", 75)),
        "PICTURE_FILENAME": os.getenv("PICTURE_FILENAME", defaults["PICTURE_FILENAME"]),
        "SNAPSHOT_FILENAME": os.getenv("SNAPSHOT_FILENAME", defaults["SNAPSHOT_FILENAME"]),
        "MOVIE_FILENAME": os.getenv("MOVIE_FILENAME", defaults["MOVIE_FILENAME"]),

        # External Commands (empty string disables the hook)
        "ON_PICTURE_SAVE": os.getenv("ON_PICTURE_SAVE", ""),
        "ON_MOVIE_START": os.getenv("ON_MOVIE_START", ""),
        "ON_MOVIE_END": os.getenv("ON_MOVIE_END", ""),
        "ON_MOTION_DETECTED": os.getenv("ON_MOTION_DETECTED", ""),
        "ON_AREA_DETECTED": os.getenv("ON_AREA_DETECTED", ""),
        "ON_EVENT_START": os.getenv("ON_EVENT_START", ""),
        "ON_EVENT_END": os.getenv("ON_EVENT_END", ""),
        "ON_CAMERA_LOST": os.getenv("ON_CAMERA_LOST", ""),

        # External Pipe
        "USE_EXTPIPE": _env_bool("USE_EXTPIPE", False),
        "EXTPIPE": os.getenv("EXTPIPE", ""),
        "EXTPIPE_SECONDARY": _env_bool("EXTPIPE_SECONDARY", False),

        # Live Stream
        "STREAM_PORT": int(os.getenv("STREAM_PORT", 0)),
        "STREAM_SECONDARY": _env_bool("STREAM_SECONDARY", False),
        "SECONDARY_TYPE": os.getenv("SECONDARY_TYPE", "raw").lower(),

        # Database
        "DATABASE_TYPE": os.getenv("DATABASE_TYPE", "").lower(),
        "DATABASE_HOST": os.getenv("DATABASE_HOST", "localhost"),
        "DATABASE_PORT": int(os.getenv("DATABASE_PORT", 0)),
        "DATABASE_USER": os.getenv("DATABASE_USER", ""),
        "DATABASE_PASSWORD": os.getenv("DATABASE_PASSWORD", ""),
        "DATABASE_DBNAME": os.getenv("DATABASE_DBNAME", ""),
        "SQLITE3_DB": os.getenv("SQLITE3_DB", ""),
        "SQL_QUERY": os.getenv("SQL_QUERY", defaults["SQL_QUERY"]),
        "SQL_LOG_PICTURE": _env_bool("SQL_LOG_PICTURE", True),
        "SQL_LOG_SNAPSHOT": _env_bool("SQL_LOG_SNAPSHOT", True),
        "SQL_LOG_MOTION": _env_bool("SQL_LOG_MOTION", False),
        "SQL_LOG_MOVIE": _env_bool("SQL_LOG_MOVIE", False),
        "SQL_LOG_TIMELAPSE": _env_bool("SQL_LOG_TIMELAPSE", False),
    }

    # Runtime overrides written next to the output (settings.yaml)
    from utils.settings import load_settings_yaml

    overrides = load_settings_yaml(config["TARGET_DIR"])
    for key, value in overrides.items():
        key = str(key).upper()
        if key in config:
            config[key] = value
    return config


def get_config():
    """
    Returns the process-wide configuration, loading it on first use.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


if __name__ == "__main__":
    # For testing purposes, print the configuration
    config = load_config()
    from pprint import pprint

    pprint(config)
