"""
`python -m notification_postprocess` entrypoint.

The installed console script `notification-postprocess` calls the same
`notification_postprocess.cli:main`.
"""

from .cli import main


if __name__ == "__main__":
    raise SystemExit(main())
