"""CLI commands for the local product catalog file."""

from __future__ import annotations

import click

from ims.infrastructure.bootstrap import product_catalog
from ims.infrastructure.settings import Settings


@click.command("add")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--name", required=True, help="Product name.")
@click.option("--inactive", is_flag=True, default=False, help="Register the product as inactive.")
def catalog_add(product_id: str, name: str, inactive: bool) -> None:
    """Register a product so inventory can be tracked for it."""
    product_catalog(Settings()).add(product_id, name, is_active=not inactive)
    state = "inactive" if inactive else "active"
    click.echo(f"Product '{product_id}' ({name}) registered as {state}")


@click.command("list")
def catalog_list() -> None:
    """List catalog products."""
    products = product_catalog(Settings()).list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<12} {'Name':<24} {'Active':>6}")
    click.echo("-" * 44)
    for p in products:
        active = "yes" if p.get("is_active", True) else "no"
        click.echo(f"{p['id']:<12} {p['name']:<24} {active:>6}")
