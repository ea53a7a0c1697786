"""
Package entry point.

Allows running the application via:

    python -m mycalendar --mode interactive

This simply forwards execution to mycalendar.cli.main().
"""

from mycalendar.cli import main

if __name__ == "__main__":
    main()
