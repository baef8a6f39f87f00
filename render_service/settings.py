from pathlib import Path
import os
from dotenv import load_dotenv
from django.core.exceptions import ImproperlyConfigured

# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def env(name: str, default=None, *, required: bool = False):
    val = os.getenv(name, default)
    if required and (val is None or (isinstance(val, str) and val.strip() == "")):
        raise ImproperlyConfigured(f"Missing required environment variable: {name}")
    return val

def env_bool(name: str, default: bool = False) -> bool:
    return str(os.getenv(name, str(default))).lower() in {"1", "true", "yes", "on"}

def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ImproperlyConfigured(f"Environment variable {name} must be an integer, got {raw!r}") from None

def env_list(name: str, default: str = "") -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]

# -----------------------------------------------------
# Paths & basics
# -----------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

DEBUG = env_bool("DEBUG", False)

# In production (DEBUG=False) you must set a strong secret in .env
SECRET_KEY = env("DJANGO_SECRET_KEY", "dev-only-secret-key-change-me", required=not DEBUG)

# Keep hosts explicit by default
ALLOWED_HOSTS = env_list("ALLOWED_HOSTS", "127.0.0.1,localhost")

# -----------------------------------------------------
# Applications
# -----------------------------------------------------
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",

    # Third-party
    "rest_framework",

    # Local
    "renderer",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "render_service.urls"

WSGI_APPLICATION = "render_service.wsgi.application"

# -----------------------------------------------------
# Database
# Render jobs live only as long as the worker running them; nothing is stored.
# -----------------------------------------------------
DATABASES = {}

# -----------------------------------------------------
# Internationalization
# -----------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# -----------------------------------------------------
# Django REST Framework
# -----------------------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
    ],
    "UNAUTHENTICATED_USER": None,
}

# -----------------------------------------------------
# Logging
# -----------------------------------------------------
LOG_LEVEL = env("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "renderer": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "celery": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}

# -----------------------------------------------------
# Celery / Redis
# -----------------------------------------------------
CELERY_BROKER_URL = env("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_TASK_IGNORE_RESULT = True
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = env_int("CELERY_TASK_TIME_LIMIT", 60 * 60)  # seconds, whole render job
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER", False)  # local dev without a worker
CELERY_WORKER_HIJACK_ROOT_LOGGER = False

# -----------------------------------------------------
# S3 / MinIO (env-driven; no hardcoded secrets)
# -----------------------------------------------------
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL") or None  # None -> AWS default endpoint
S3_REGION = os.getenv("S3_REGION", "us-east-2")
S3_BUCKET = os.getenv("S3_BUCKET", "wemaki-dev")
S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY")          # falls back to the AWS credential chain
S3_SECRET_KEY = os.getenv("S3_SECRET_KEY")
S3_CONNECT_TIMEOUT = env_int("S3_CONNECT_TIMEOUT", 10)
S3_READ_TIMEOUT = env_int("S3_READ_TIMEOUT", 120)
S3_MAX_ATTEMPTS = env_int("S3_MAX_ATTEMPTS", 3)

# -----------------------------------------------------
# Render pipeline
# -----------------------------------------------------
RENDER_TEMPLATES_ROOT = Path(env("RENDER_TEMPLATES_ROOT", str(BASE_DIR / "templates")))
AE_RENDER_PATH = env(
    "AE_RENDER_PATH",
    r"C:\Program Files\Adobe\Adobe After Effects CC 2017\Support Files\aerender.exe",
)
FFMPEG_PATH = env("FFMPEG_PATH", "ffmpeg")
RENDER_COMPOSITION = env("RENDER_COMPOSITION", "MAIN_COMP")
RENDER_OUTPUT_MODULE = env("RENDER_OUTPUT_MODULE", "QuickTime")
RENDER_START_FRAME = env_int("RENDER_START_FRAME", 0)

# Files that ship with the template and must not be overwritten by remote copies
ASSET_IGNORE_NAMES = env_list("ASSET_IGNORE_NAMES", "demo_hd.mp4,render_old.aepx")
ASSET_FETCH_WORKERS = env_int("ASSET_FETCH_WORKERS", 8)

SUBPROCESS_TIMEOUT = env_int("SUBPROCESS_TIMEOUT", 45 * 60)  # seconds, per render/transcode run
PROGRESS_TIMEOUT = env_int("PROGRESS_TIMEOUT", 10)  # seconds, per progress PUT
PROGRESS_ERROR_DETAIL = env_bool("PROGRESS_ERROR_DETAIL", False)
