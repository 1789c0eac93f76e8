"""
Command line entry point for the field-service scheduler.

Lists bookable slots for a territory and date, or runs one booking
submission through the routing feasibility check. By default the demo
territory catalog and an in-memory order store are used; pass --backend
to read from and write to the configured commerce backend instead.

Usage:
    List slots:  python main.py slots --territory north --date 2026-10-20
    Book a slot: python main.py book --order-id cart_1 --territory north \
                     --date 2026-10-20 --slot "09:00" --kind exact \
                     --lat -37.81 --lng 144.96
"""

import argparse
import asyncio
import logging
import sys
from datetime import date

from src.config import settings
from src.scheduling import SchedulingOrchestrator, SchedulingSession
from src.scheduling.messages import NO_SLOTS_MESSAGE
from src.schemas.booking_schema import BookingKind
from src.tools.backend import BackendClient
from src.tools.orders import InMemoryOrderStore, OrderRecord
from src.tools.routing import FeasibilityGateway
from src.tools.territories import InMemoryTerritoryCatalog

logger = logging.getLogger(__name__)

GREEN = "\033[92m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


def _build_orchestrator(args: argparse.Namespace) -> SchedulingOrchestrator:
    gateway = FeasibilityGateway()
    if args.backend:
        backend = BackendClient()
        return SchedulingOrchestrator(backend, backend, backend, gateway)

    orders = InMemoryOrderStore()
    orders.add_order(OrderRecord(
        order_id=args.order_id,
        territory_name=args.territory,
        duration_minutes=args.duration,
        latitude=getattr(args, "lat", None),
        longitude=getattr(args, "lng", None),
    ))
    return SchedulingOrchestrator(InMemoryTerritoryCatalog(), orders, orders, gateway)


def _print_groups(session: SchedulingSession) -> None:
    if not session.slot_groups:
        print(f"{DIM}{NO_SLOTS_MESSAGE}{RESET}")
        return
    for group in session.slot_groups:
        print(f"{BOLD}{group.period.value}{RESET}")
        for slot in group.slots:
            techs = ", ".join(slot.candidates)
            print(f"  {slot.kind.value:<5} {slot.label:<13} {DIM}{techs}{RESET}")


async def _run_slots(args: argparse.Namespace) -> int:
    orchestrator = _build_orchestrator(args)
    session = orchestrator.start_session(args.order_id, args.territory)
    await orchestrator.refresh_availability(session, args.date, args.duration)
    _print_groups(session)
    return 0


async def _run_book(args: argparse.Namespace) -> int:
    orchestrator = _build_orchestrator(args)
    session = orchestrator.start_session(
        args.order_id,
        args.territory,
        latitude=args.lat,
        longitude=args.lng,
        technician_priority=args.technician,
    )
    await orchestrator.refresh_availability(session, args.date, args.duration)
    slot = session.find_slot(args.slot, BookingKind(args.kind))
    if slot is None:
        print(f"{RED}Slot {args.slot!r} ({args.kind}) is not offered on {args.date}.{RESET}")
        _print_groups(session)
        return 1

    orchestrator.select_slot(session, slot)
    result = await orchestrator.submit(session)
    colour = GREEN if result.committed else RED
    print(f"{colour}{BOLD}[{result.outcome.value}]{RESET} {colour}{result.message}{RESET}")
    if result.error is not None:
        print(f"{DIM}  >> {result.error}{RESET}")
    return 0 if result.committed else 1


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=settings.app_name)
    parser.add_argument("--backend", action="store_true",
                        help="use the configured commerce backend instead of demo data")
    sub = parser.add_subparsers(dest="command", required=True)

    def common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--territory", required=True)
        p.add_argument("--date", required=True, type=date.fromisoformat)
        p.add_argument("--duration", type=int,
                       default=settings.scheduling.default_duration_minutes)
        p.add_argument("--order-id", default="cart_demo")

    common(sub.add_parser("slots", help="list bookable slots"))

    book = sub.add_parser("book", help="submit one booking")
    common(book)
    book.add_argument("--slot", required=True, help='slot label, e.g. "09:00" or "09:00 - 12:00"')
    book.add_argument("--kind", choices=[k.value for k in BookingKind], default="exact")
    book.add_argument("--lat", type=float)
    book.add_argument("--lng", type=float)
    book.add_argument("--technician", help="preferred technician email")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = _parse_args(sys.argv[1:])
    runner = _run_book if args.command == "book" else _run_slots
    sys.exit(asyncio.run(runner(args)))
