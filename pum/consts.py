from os import environ
from pathlib import Path

TOP_LEVEL = Path(__file__).resolve().parent

_CONF_DIR = TOP_LEVEL / "config"
CONFIG_YML = _CONF_DIR / "defaults.yml"

SETTINGS_VAR = "pum_settings"
LOGGER_NAME = "pum"

DEBUG = "PUM_DEBUG" in environ
DEBUG_METRICS = "PUM_DEBUG_METRICS" in environ

INSERT_MODE = "i"
