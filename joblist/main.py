"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service.
"""

import argparse

import uvicorn

from joblist.bootstrap import bootstrap_create_application
from joblist.config import config_load_settings


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="Job list service runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api",),
        help="Runtime command: `api` starts the HTTP server",
        type=str,
    )
    argument_parser.add_argument(
        "--host",
        dest="host",
        type=str,
        help="Optional bind host override for `api`",
    )
    argument_parser.add_argument(
        "--port",
        dest="port",
        type=int,
        help="Optional bind port override for `api`",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    application = bootstrap_create_application(settings=settings)
    uvicorn.run(
        application,
        host=parsed_arguments.host or settings.application_host,
        port=parsed_arguments.port or settings.application_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
