"""WSGI entry point for production deployment."""
import sys
import logging
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).parent))

from config import load_config
from utils.logger import setup_logging
from main import build_components
from web.app import create_app

config = load_config()
setup_logging(config["logging"]["level"], config["logging"].get("file"))
logger = logging.getLogger("signalpulse.wsgi")

engines = build_components(config)
app = create_app(config, engines)
logger.info(f"SignalPulse API ready (db: {config['database']['path']})")
