from typing import TYPE_CHECKING, List

from rich.panel import Panel
from rich.table import Table

from net_loginer.model.auth_result import Success, describe
from net_loginer.view.console import console

if TYPE_CHECKING:
    from net_loginer.controller.auth_flow import AddressOutcome


class ShowAuthResult:
    def show(self, outcomes: List['AddressOutcome']) -> int:
        if not outcomes:
            console.print("[bold yellow]⚠[/bold yellow]  No address was attempted")
            return 0

        table = Table(show_header=True, header_style="bold dim", box=None, padding=(0, 2))
        table.add_column("Address", style="cyan")
        table.add_column("")
        table.add_column("Result")
        table.add_column("Attempts", justify="right", style="dim")
        for o in outcomes:
            ok = isinstance(o.result, Success)
            table.add_row(
                o.address,
                "[bold green]✓[/bold green]" if ok else "[bold red]✗[/bold red]",
                describe(o.result),
                str(o.attempts),
            )

        all_ok = all(isinstance(o.result, Success) for o in outcomes)
        console.print()
        console.print(Panel(
            table,
            title="[bold green]✓ Online[/bold green]" if all_ok else "[bold red]✗ Login failed[/bold red]",
            border_style="green" if all_ok else "red",
            padding=(1, 2),
        ))
        return 0
