"""
KeyCalc Configuration Settings
"""
import logging
import os

# Application Settings
APP_NAME = "KeyCalc Four-Function Calculator"
VERSION = "1.0.0"

# Display Settings
DISPLAY_WIDTH = 10          # characters, sign and decimal point included
INITIAL_DISPLAY = "0"
ERROR_TEXT = "Error"        # result too wide for the display
UNDEFINED_TEXT = "Undefined"  # division by zero

# Engine Settings
MAX_STACK_DEPTH = 5         # operand op operand op operand

# Session Settings
MAX_SESSIONS = int(os.environ.get("KEYCALC_MAX_SESSIONS", 1000))
SESSION_IDLE_TIMEOUT = int(os.environ.get("KEYCALC_SESSION_IDLE_TIMEOUT", 30 * 60))  # seconds

# Web API settings
WEB_HOST = os.environ.get("KEYCALC_HOST", "0.0.0.0")
WEB_PORT = int(os.environ.get("KEYCALC_PORT", 8888))
MAX_REQUEST_BYTES = 16 * 1024  # a key string is never longer than this

# Logging
LOG_LEVEL = getattr(logging, os.environ.get("KEYCALC_LOG_LEVEL", "INFO").upper(), logging.INFO)
LOG_FILE = os.environ.get("KEYCALC_LOG_FILE") or None
