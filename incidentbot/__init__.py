#!/usr/bin/env python3
"""incidentbot - Chat-channel incident coordination bot."""

__version__ = "1.0.0"


def main():
    """Console entry point; argument handling lives in incidentbot.cmd.telegram."""
    import sys

    from incidentbot.cmd.telegram import main as telegram_main

    sys.exit(telegram_main(sys.argv[1:]))


if __name__ == "__main__":
    main()
