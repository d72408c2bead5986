"""CLI command for the expiration sweeper."""

from __future__ import annotations

import click

from orderflow.domain.repository.unit_of_work import ConsistencyMode
from orderflow.infrastructure.bootstrap import Container


@click.command("run")
@click.option("--once", is_flag=True, default=False, help="Run a single sweep and exit.")
@click.pass_obj
def sweeper_run(app: Container, once: bool) -> None:
    """Cancel expired orders, periodically or once."""
    if once:
        report = app.expire_orders().handle()
        click.echo(
            f"Examined {report.examined}, cancelled {len(report.cancelled)}, "
            f"skipped {len(report.skipped)}, failed {len(report.failed)}."
        )
        if app.uow.mode is ConsistencyMode.COMPARE_AND_SWAP:
            repaired = app.reconcile_inventory().handle()
            click.echo(f"Reconciled {repaired.repaired} stranded reservations.")
        return

    click.echo(
        f"Sweeping every {app.settings.sweep_interval_seconds:g}s. Press Ctrl+C to stop."
    )
    try:
        app.sweeper(run_immediately=True).run_loop()
    except KeyboardInterrupt:
        click.echo("Sweeper stopped.")
