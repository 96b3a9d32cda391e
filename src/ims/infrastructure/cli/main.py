import click

from ims.infrastructure.cli.catalog_commands import catalog_add, catalog_list
from ims.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_alerts,
    inventory_configure,
    inventory_create,
    inventory_get,
    inventory_history,
    inventory_reorder,
    inventory_show,
    inventory_verify,
)
from ims.infrastructure.cli.reservation_commands import (
    reservation_commit,
    reservation_extend,
    reservation_list,
    reservation_release,
    reservation_reserve,
    reservation_stats,
    reservation_sweep,
)
from ims.infrastructure.logging_setup import setup_logging
from ims.infrastructure.settings import Settings


@click.group()
def cli() -> None:
    """IMS — Inventory & Stock Reservation Core"""
    setup_logging(Settings())


@cli.group()
def catalog() -> None:
    """Manage the local product catalog."""


@cli.group()
def inventory() -> None:
    """Manage stock levels."""


@cli.group()
def reservation() -> None:
    """Manage stock reservations."""


# Register subcommands
catalog.add_command(catalog_add)
catalog.add_command(catalog_list)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_alerts)
inventory.add_command(inventory_configure)
inventory.add_command(inventory_create)
inventory.add_command(inventory_get)
inventory.add_command(inventory_history)
inventory.add_command(inventory_reorder)
inventory.add_command(inventory_show)
inventory.add_command(inventory_verify)
reservation.add_command(reservation_commit)
reservation.add_command(reservation_extend)
reservation.add_command(reservation_list)
reservation.add_command(reservation_release)
reservation.add_command(reservation_reserve)
reservation.add_command(reservation_stats)
reservation.add_command(reservation_sweep)
