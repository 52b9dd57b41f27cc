"""Thin runnable wrapper: ``python -m chat_app``."""

from chat_app.tui_app import main

if __name__ == "__main__":
    raise SystemExit(main())
