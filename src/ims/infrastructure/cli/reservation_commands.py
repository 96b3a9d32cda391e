"""CLI commands for stock reservations."""

from __future__ import annotations

import time

import click

from ims.domain.exceptions import DomainException
from ims.domain.model.reservation import ReservationOwner
from ims.infrastructure.bootstrap import Application, build_application
from ims.infrastructure.sweeper import ReservationSweeper


def _echo_alerts(app: Application) -> None:
    for alert in app.alerts.alerts:
        click.echo(f"Alert [{alert.severity.value}]: {alert.message}")


def _owner(order_id: str | None, cart_id: str | None) -> ReservationOwner:
    try:
        return ReservationOwner(order_id=order_id, cart_id=cart_id)
    except DomainException:
        raise click.UsageError("Pass exactly one of --order or --cart.")


@click.command("reserve")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--quantity", required=True, type=int)
@click.option("--order", "order_id", default=None, help="Owning order ID.")
@click.option("--cart", "cart_id", default=None, help="Owning cart ID.")
@click.option("--ttl", "ttl_minutes", default=None, type=int, help="Minutes until the hold expires.")
def reservation_reserve(
    product_id: str,
    quantity: int,
    order_id: str | None,
    cart_id: str | None,
    ttl_minutes: int | None,
) -> None:
    """Hold stock for a cart or order."""
    owner = _owner(order_id, cart_id)
    app = build_application()

    try:
        reservation = app.service.reserve(product_id, quantity, owner, ttl_minutes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Reservation {reservation.id} holds {quantity} of '{product_id}' for {owner}")
    click.echo(f"Expires at {reservation.expires_at:%Y-%m-%d %H:%M:%S} UTC")
    _echo_alerts(app)


@click.command("release")
@click.option("--id", "reservation_id", default=None, help="Reservation ID.")
@click.option("--order", "order_id", default=None, help="Release every hold of this order.")
@click.option("--cart", "cart_id", default=None, help="Release every hold of this cart.")
@click.option("--reason", default="released", show_default=True)
def reservation_release(
    reservation_id: str | None,
    order_id: str | None,
    cart_id: str | None,
    reason: str,
) -> None:
    """Give reserved stock back (by reservation, order or cart)."""
    service = build_application().service

    try:
        if reservation_id:
            freed = service.release(reservation_id, reason)
        else:
            freed = service.release_for_owner(_owner(order_id, cart_id), reason)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if freed:
        click.echo(f"Released {freed} units.")
    else:
        click.echo("Nothing to release.")


@click.command("extend")
@click.option("--id", "reservation_id", required=True, help="Reservation ID.")
@click.option("--minutes", default=None, type=int, help="New time to live from now.")
def reservation_extend(reservation_id: str, minutes: int | None) -> None:
    """Push back the expiry of an active reservation."""
    try:
        reservation = build_application().service.extend(reservation_id, minutes)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Reservation {reservation_id} now expires at "
        f"{reservation.expires_at:%Y-%m-%d %H:%M:%S} UTC"
    )


@click.command("commit")
@click.option("--order", "order_id", required=True, help="Confirmed order ID.")
def reservation_commit(order_id: str) -> None:
    """Convert an order's holds into sales."""
    app = build_application()
    try:
        sold = app.service.commit_for_order(order_id, created_by="cli")
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {order_id}: {sold} units committed as sold.")
    _echo_alerts(app)


@click.command("list")
@click.option("--product", "product_id", default=None, help="Live holds on this product.")
@click.option("--order", "order_id", default=None, help="Every hold of this order.")
@click.option("--cart", "cart_id", default=None, help="Every hold of this cart.")
def reservation_list(product_id: str | None, order_id: str | None, cart_id: str | None) -> None:
    """List reservations."""
    app = build_application()
    if product_id:
        reservations = app.service.active_reservations(product_id)
    else:
        reservations = app.reservations.reservations_for_owner(_owner(order_id, cart_id))

    if not reservations:
        click.echo("No reservations found.")
        return

    now = app.reservations.now()
    click.echo(f"{'ID':<34} {'Product':<14} {'Qty':>5} {'Owner':<20} {'State':<9} Expires")
    click.echo("-" * 100)
    for r in reservations:
        click.echo(
            f"{r.id:<34} {r.product_id:<14} {r.quantity:>5} {str(r.owner):<20} "
            f"{r.state(now).value:<9} {r.expires_at:%Y-%m-%d %H:%M:%S}"
        )


@click.command("sweep")
@click.option("--watch", is_flag=True, default=False, help="Keep sweeping until interrupted.")
@click.option("--interval", default=None, type=float, help="Seconds between sweeps.")
def reservation_sweep(watch: bool, interval: float | None) -> None:
    """Release reservations whose time to live has passed."""
    app = build_application()
    sweeper = ReservationSweeper(
        app.reservations, interval or app.settings.sweep_interval_seconds
    )

    if not watch:
        count = sweeper.run_once()
        click.echo(f"Expired {count} reservation(s).")
        return

    sweeper.start()
    click.echo("Sweeping expired reservations; press Ctrl+C to stop.")
    try:
        while sweeper.is_running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        sweeper.stop()


@click.command("stats")
def reservation_stats() -> None:
    """Summarise live reservations."""
    stats = build_application().service.reservation_stats()

    click.echo(f"Active reservations: {stats.total_active_reservations}")
    click.echo(f"Reserved units:      {stats.total_reserved_quantity}")
    click.echo(f"Expiring soon:       {stats.expiring_soon}")
    if stats.by_product:
        click.echo()
        click.echo(f"  {'Product':<16} {'Reserved':>9} {'Holds':>6}")
        click.echo(f"  {'-'*33}")
        for p in stats.by_product:
            click.echo(f"  {p.product_id:<16} {p.reserved_quantity:>9} {p.reservation_count:>6}")
