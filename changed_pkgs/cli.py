"""changed-go-packages command line"""
import logging
import sys

import click

from changed_pkgs.config import get_settings
from changed_pkgs.errors import ChangedPackagesError, OperationInterrupted
from changed_pkgs.services.analyzer import ChangedPackagesAnalyzer

EXIT_FAILURE = 1
# https://tldp.org/LDP/abs/html/exitcodes.html
SIGNAL_EXIT_BASE = 128
SIGINT_VALUE = 2
EXIT_INTERRUPTED = SIGNAL_EXIT_BASE + SIGINT_VALUE

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def configure_logging(level: str):
    """Logs go to stderr, stdout only carries package paths."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


@click.command(name="changed-go-packages")
@click.option("--from-ref", required=True, help="Revision to compare from")
@click.option("--to-ref", required=True, help="Revision to compare to")
@click.option("--repo-dir", default=None, help="The Git repo to inspect (default: .)")
@click.option(
    "--mod-dir",
    default=None,
    help="Path to the directory containing go.mod. Used to find local packages (default: .)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level for messages written to stderr",
)
@click.option("--explain", is_flag=True, help="Print why each package changed")
@click.pass_context
def cli(ctx, from_ref, to_ref, repo_dir, mod_dir, log_level, explain):
    """Get the changed Go packages between two commits"""
    settings = get_settings()
    configure_logging(log_level or settings.LOG_LEVEL)

    try:
        analyzer = ChangedPackagesAnalyzer.from_settings(settings, repo_dir=repo_dir)
        change_set = analyzer.get_changed_packages(mod_dir or settings.MOD_DIR, from_ref, to_ref)
    except (OperationInterrupted, KeyboardInterrupt):
        click.echo("interrupted (^C)", err=True)
        ctx.exit(EXIT_INTERRUPTED)
    except ChangedPackagesError as e:
        click.echo(f"getting changed packages: {e}", err=True)
        ctx.exit(EXIT_FAILURE)

    for pkg_path in sorted(change_set.packages):
        reason = change_set.reasons.get(pkg_path)
        if explain and reason is not None:
            click.echo(f"{pkg_path}\t{reason.describe()}")
        else:
            click.echo(pkg_path)


if __name__ == "__main__":
    cli()
