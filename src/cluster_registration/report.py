"""Render registrations for the terminal using Rich."""

from __future__ import annotations

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from cluster_registration.models import RegistrationRecord
from cluster_registration.state import TrackedRegistration

RECORD_TEMPLATE = """
**Status:** {status}

**ARN:** {arn}

## Connector
- provider: {provider}
- role: {role_arn}
- activation id: {activation_id}
- activation code: {activation_code}
- activation expires: {activation_expiry}
"""

RECORD_ACTIVATION_HINT = """
Install the connector in the external cluster with the activation code above before it expires.
"""

ABSENT_TEMPLATE = """
Cluster registration **{name}** no longer exists; it was removed from tracked state.
"""


def _or_dash(value: object) -> str:
    return "-" if value in (None, "") else str(value)


def render_record(record: RegistrationRecord) -> str:
    connector = record.connector_config
    text = RECORD_TEMPLATE.format(
        status=_or_dash(record.status),
        arn=_or_dash(record.arn),
        provider=_or_dash(connector.provider if connector else None),
        role_arn=_or_dash(connector.role_arn if connector else None),
        activation_id=_or_dash(connector.activation_id if connector else None),
        activation_code=_or_dash(connector.activation_code if connector else None),
        activation_expiry=_or_dash(
            connector.activation_expiry.isoformat() if connector and connector.activation_expiry else None
        ),
    )
    if connector and connector.activation_code:
        text += RECORD_ACTIVATION_HINT
    return text


def print_record(record: RegistrationRecord, console: Console | None = None) -> None:
    c = console or Console()
    c.print(Panel(Markdown(render_record(record)), title=f"Cluster registration {record.name}", border_style="blue"))
    if record.tags:
        c.print(f"[bold]Tags:[/bold] {', '.join(f'{k}={v}' for k, v in sorted(record.tags.items()))}")


def print_absent(name: str, console: Console | None = None) -> None:
    c = console or Console()
    c.print(Panel(Markdown(ABSENT_TEMPLATE.format(name=name)), border_style="yellow"))


def print_tracked(entries: list[TrackedRegistration], console: Console | None = None) -> None:
    c = console or Console()
    table = Table(title="Tracked cluster registrations")
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Provider")
    table.add_column("Tracked at")
    for entry in entries:
        connector = entry.record.connector_config
        table.add_row(
            entry.id,
            _or_dash(entry.record.status),
            _or_dash(connector.provider if connector else None),
            entry.tracked_at.isoformat(timespec="seconds"),
        )
    c.print(table)
