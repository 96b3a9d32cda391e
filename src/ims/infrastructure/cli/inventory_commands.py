"""CLI commands for stock levels, adjustments and the ledger."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import click

from ims.domain.exceptions import DomainException
from ims.domain.model.inventory import InventoryRecord
from ims.domain.model.movement import MovementReason
from ims.infrastructure.bootstrap import Application, build_application
from ims.infrastructure.settings import Settings


def _parse_cost(raw: str | None) -> Decimal | None:
    if raw is None:
        return None
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise click.BadParameter(f"Invalid unit cost '{raw}'.")


def _echo_alerts(app: Application) -> None:
    for alert in app.alerts.alerts:
        click.echo(f"Alert [{alert.severity.value}]: {alert.message}")


def _display_record(record: InventoryRecord) -> None:
    click.echo(f"Product {record.product_id}  (status={record.status.value})")
    click.echo(f"  On hand:    {record.quantity}")
    click.echo(f"  Reserved:   {record.reserved_quantity}")
    click.echo(f"  Available:  {record.available_quantity}")
    click.echo(
        f"  Thresholds: low={record.low_stock_threshold} "
        f"reorder={record.reorder_point} (+{record.reorder_quantity})"
        + (f" max={record.max_stock_level}" if record.max_stock_level is not None else "")
    )
    click.echo(f"  Avg cost:   {record.average_cost}")
    click.echo(f"  Version:    {record.version}")


@click.command("create")
@click.option("--product", "product_id", required=True, help="Catalog product ID.")
@click.option("--quantity", default=0, show_default=True, type=int, help="Opening stock.")
@click.option("--unit-cost", default=None, help="Cost per unit of the opening stock.")
@click.option("--low-stock-threshold", type=int, default=None)
@click.option("--reorder-point", type=int, default=None)
@click.option("--reorder-quantity", type=int, default=None)
@click.option("--max-stock-level", type=int, default=None)
def inventory_create(
    product_id: str,
    quantity: int,
    unit_cost: str | None,
    low_stock_threshold: int | None,
    reorder_point: int | None,
    reorder_quantity: int | None,
    max_stock_level: int | None,
) -> None:
    """Start tracking stock for a catalog product."""
    settings = Settings()
    app = build_application(settings)

    try:
        record = app.service.create(
            product_id,
            quantity,
            unit_cost=_parse_cost(unit_cost),
            created_by="cli",
            low_stock_threshold=(
                low_stock_threshold if low_stock_threshold is not None else settings.low_stock_threshold
            ),
            reorder_point=reorder_point if reorder_point is not None else settings.reorder_point,
            reorder_quantity=(
                reorder_quantity if reorder_quantity is not None else settings.reorder_quantity
            ),
            max_stock_level=max_stock_level,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Inventory for '{product_id}' created with {record.quantity} units "
               f"(status={record.status.value})")
    _echo_alerts(app)


@click.command("show")
def inventory_show() -> None:
    """Show current stock levels of every product."""
    records = build_application().service.list_all()

    if not records:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'Product':<16} {'On hand':>8} {'Reserved':>10} {'Available':>10}  Status")
    click.echo("-" * 62)
    for r in records:
        click.echo(
            f"{r.product_id:<16} {r.quantity:>8} {r.reserved_quantity:>10} "
            f"{r.available_quantity:>10}  {r.status.value}"
        )


@click.command("get")
@click.option("--product", "product_id", required=True, help="Product ID.")
def inventory_get(product_id: str) -> None:
    """Show one product's inventory record."""
    try:
        record = build_application().service.get(product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_record(record)


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option(
    "--type", "adjustment_type", required=True,
    type=click.Choice(["set", "increase", "decrease"], case_sensitive=False),
)
@click.option("--quantity", required=True, type=int)
@click.option("--reason", required=True, help="Why stock is being changed.")
@click.option(
    "--reason-code", default=None,
    type=click.Choice([r.value for r in MovementReason], case_sensitive=False),
)
@click.option("--unit-cost", default=None, help="Cost per unit of incoming stock.")
@click.option("--force", is_flag=True, default=False, help="Release holds that no longer fit.")
@click.option("--override-reason", default=None, help="Required with --force.")
def inventory_adjust(
    product_id: str,
    adjustment_type: str,
    quantity: int,
    reason: str,
    reason_code: str | None,
    unit_cost: str | None,
    force: bool,
    override_reason: str | None,
) -> None:
    """Set, increase or decrease physical stock."""
    app = build_application()

    try:
        record = app.service.adjust(
            product_id,
            adjustment_type,
            quantity,
            reason,
            _parse_cost(unit_cost),
            reason_code=MovementReason(reason_code.upper()) if reason_code else None,
            created_by="cli",
            force=force,
            override_reason=override_reason,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product '{product_id}' now has {record.quantity} on hand, "
               f"{record.available_quantity} available (status={record.status.value})")
    _echo_alerts(app)


@click.command("configure")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--low-stock-threshold", type=int, default=None)
@click.option("--reorder-point", type=int, default=None)
@click.option("--reorder-quantity", type=int, default=None)
@click.option("--max-stock-level", type=int, default=None)
@click.option("--discontinued/--not-discontinued", default=None)
@click.option("--track/--no-track", "track_inventory", default=None)
@click.option("--backorder-limit", type=int, default=None,
              help="Allow stock to go this far below zero (0 disables backorders).")
def inventory_configure(
    product_id: str,
    low_stock_threshold: int | None,
    reorder_point: int | None,
    reorder_quantity: int | None,
    max_stock_level: int | None,
    discontinued: bool | None,
    track_inventory: bool | None,
    backorder_limit: int | None,
) -> None:
    """Change thresholds and lifecycle flags of a product."""
    settings = {
        "low_stock_threshold": low_stock_threshold,
        "reorder_point": reorder_point,
        "reorder_quantity": reorder_quantity,
        "max_stock_level": max_stock_level,
        "is_discontinued": discontinued,
        "track_inventory": track_inventory,
    }
    if backorder_limit is not None:
        settings["allow_backorder"] = backorder_limit > 0
        settings["backorder_limit"] = backorder_limit
    changes = {k: v for k, v in settings.items() if v is not None}
    if not changes:
        raise click.UsageError("Nothing to configure.")

    app = build_application()
    try:
        record = app.service.configure(product_id, **changes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_record(record)
    _echo_alerts(app)


@click.command("history")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--limit", default=20, show_default=True, type=int)
def inventory_history(product_id: str, limit: int) -> None:
    """Show the most recent ledger movements of a product."""
    movements = build_application().service.history(product_id, limit)

    if not movements:
        click.echo(f"No movements recorded for '{product_id}'.")
        return

    click.echo(f"{'When':<20} {'Dir':<10} {'Qty':>6} {'Before':>7} {'After':>7}  Reason")
    click.echo("-" * 72)
    for m in movements:
        code = f" [{m.reason_code.value}]" if m.reason_code else ""
        click.echo(
            f"{m.created_at:%Y-%m-%d %H:%M:%S}  {m.direction.value:<10} {m.quantity:>6} "
            f"{m.previous_quantity:>7} {m.new_quantity:>7}  {m.reason}{code}"
        )


@click.command("alerts")
def inventory_alerts() -> None:
    """List products that are currently low or out of stock."""
    alerts = build_application().service.low_stock_alerts()

    if not alerts:
        click.echo("No low stock alerts.")
        return

    for alert in alerts:
        click.echo(f"[{alert.severity.value:>8}] {alert.message}")


@click.command("reorder")
def inventory_reorder() -> None:
    """Suggest reorder quantities for products at or below their reorder point."""
    suggestions = build_application().service.reorder_suggestions()

    if not suggestions:
        click.echo("Nothing to reorder.")
        return

    click.echo(f"{'Product':<16} {'Available':>10} {'Reorder at':>11} {'Order':>8}")
    click.echo("-" * 48)
    for s in suggestions:
        click.echo(
            f"{s.product_id:<16} {s.available_quantity:>10} {s.reorder_point:>11} "
            f"{s.suggested_quantity:>8}"
        )


@click.command("verify")
@click.option("--product", "product_id", default=None, help="Product ID (default: all).")
def inventory_verify(product_id: str | None) -> None:
    """Check that replaying the ledger reproduces recorded quantities."""
    service = build_application().service

    try:
        product_ids = [product_id] if product_id else [r.product_id for r in service.list_all()]
        drifted = [pid for pid in product_ids if not service.verify_ledger(pid)]
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if drifted:
        raise click.ClickException(f"Ledger drift detected for: {', '.join(drifted)}")
    click.echo(f"Ledger consistent for {len(product_ids)} product(s).")
