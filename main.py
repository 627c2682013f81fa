#!/usr/bin/env python3
"""
Mx. Voice - Main Entry Point

Run this file to start the application:
    python main.py [--profile NAME] [--home DIR] [--debug]
"""

import argparse
import logging
import sys

from mxvoice.config import AppContext
from mxvoice.constants import LOG_FILE
from mxvoice.logging_setup import configure_logging
from mxvoice.profile_store import ProfileAwareStore
from mxvoice.store_handlers import register_store_handlers

logger = logging.getLogger("mxvoice.main")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Mx. Voice soundboard")
    parser.add_argument("--profile", help="profile to activate on startup")
    parser.add_argument("--home", help="data directory (default: ~/.mxvoice)")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    context = AppContext.create(args.home, debug=args.debug)
    configure_logging(context.home / LOG_FILE, debug=args.debug)

    manager = context.profile_manager
    if not manager.perform_migration():
        logger.error("Profile migration failed, continuing with defaults")

    profile_store = ProfileAwareStore(context)
    if args.profile and not profile_store.switch_profile(args.profile):
        logger.warning("Profile %s not found, using %s", args.profile, manager.get_active_profile())

    register_store_handlers(context.channel, profile_store)

    from mxvoice.gui import MxVoiceApp

    app = MxVoiceApp(context, profile_store)
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
