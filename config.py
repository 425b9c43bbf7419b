import os
from dotenv import load_dotenv

# Absolute path to project root
basedir = os.path.abspath(os.path.dirname(__file__))

# Runtime only directory (DB, secrets)
instance_dir = os.path.join(basedir, "instance")

load_dotenv(os.path.join(basedir, ".env"))


def env_bool(name, default=False):
    val = os.environ.get(name)
    if val is None:
        return default
    return str(val).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(instance_dir, "registrar.db"),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Drops are only checked against the add/drop window when this is on.
    ENFORCE_ADD_DROP_WINDOW = env_bool("ENFORCE_ADD_DROP_WINDOW", False)

    # Recompute percentage + letter from stored scores instead of trusting the grade sheet.
    REDERIVE_FINAL_GRADES = env_bool("REDERIVE_FINAL_GRADES", False)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "DEBUG"
    ENFORCE_ADD_DROP_WINDOW = False
    REDERIVE_FINAL_GRADES = False


def logging_config(level):
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": {
            "services": {
                "handlers": ["console"],
                "level": level,
                "propagate": True,
            },
            "routes": {
                "handlers": ["console"],
                "level": level,
                "propagate": True,
            },
        },
    }
