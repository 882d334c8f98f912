"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service
or runs the stats repair maintenance command.
"""

import argparse
import logging

import uvicorn

from mandate_import.bootstrap import bootstrap_create_application, bootstrap_create_import_runtime
from mandate_import.config import config_load_settings
from mandate_import.db import db_create_engine
from mandate_import.jobs import job_stats_repair_organization

logger = logging.getLogger(__name__)


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="Mandate import runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "stats-repair"),
        help="Runtime command: `api` starts server, `stats-repair` recomputes every mandate rollup",
        type=str,
    )
    argument_parser.add_argument(
        "--organization-id",
        dest="organization_id",
        type=str,
        help="Optional organization override for `stats-repair`",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if parsed_arguments.command == "stats-repair":
        organization_id = (parsed_arguments.organization_id or settings.organization_id).strip()
        engine = db_create_engine(database_url=settings.database_url)
        runtime = bootstrap_create_import_runtime(settings=settings, engine=engine)
        repair_outcome = job_stats_repair_organization(
            mandate_repository=runtime.mandate_repository,
            finalizer=runtime.stats_finalizer,
            organization_id=organization_id,
        )
        print(
            f"stats repair organization={organization_id} corrected={repair_outcome.changed} "
            f"unchanged={repair_outcome.unchanged} errors={len(repair_outcome.errors)}"
        )
        for error_message in repair_outcome.errors:
            print(error_message)
        if repair_outcome.errors:
            raise SystemExit(1)
        return

    application = bootstrap_create_application(settings=settings)
    logger.info("starting api host=%s port=%d", settings.application_host, settings.application_port)
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


if __name__ == "__main__":
    main()
