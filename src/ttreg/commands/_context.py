"""AppContext — shared Click context for all commands.

Created once by the root group and passed down via ``@click.pass_obj``.
Builds the RegistrationService lazily so ``--help`` never touches the
queue file, and owns result emission (stdout/stderr routing, exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from ttreg.config.logging import configure_logging
from ttreg.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from ttreg.config.settings import TtregSettings
    from ttreg.services.registration import RegistrationService
    from ttreg.services.result import ServiceResult


class AppContext:
    """Settings plus the lazily created service for one invocation."""

    def __init__(self, settings: TtregSettings) -> None:
        self.settings = settings
        self._service: RegistrationService | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def service(self) -> RegistrationService:
        if self._service is None:
            from ttreg.services.registration import RegistrationService

            self._service = RegistrationService(self.settings)
        return self._service

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; exit with status 1 if it failed.

        Success goes to stdout with warnings on stderr; failure goes to stderr.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output and not settings.verbose:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
