"""CLI bootstrap for splitledger."""

import json
from decimal import Decimal
from pathlib import Path
from uuid import UUID

import typer
from pydantic import BaseModel, Field

from splitledger.domain.debt_simplifier import (
    NetBalance,
    simplify_debts,
    total_transferred,
)
from splitledger.domain.errors import DomainError
from splitledger.domain.money import format_money
from splitledger.domain.split_calculator import ParticipantInput, compute_splits

app = typer.Typer(help="CLI for shared-expense splitting and debt simplification.")
INPUT_FILE_OPTION = typer.Option(..., exists=True, dir_okay=False)


class SplitParticipantFile(BaseModel):
    user_id: UUID
    paid_amount: Decimal = Decimal("0")
    owed_amount: Decimal | None = None
    percentage: Decimal | None = None
    shares: int | None = None


class SplitFile(BaseModel):
    """JSON document accepted by ``split``."""

    amount: Decimal
    split_method: str
    participants: list[SplitParticipantFile] = Field(default_factory=list)


class BalanceFileEntry(BaseModel):
    user: str
    net_amount: Decimal


@app.command("healthcheck")
def healthcheck() -> None:
    """Verify that the CLI entrypoint is available."""
    typer.echo("splitledger is ready")


@app.command("split")
def split(input: Path = INPUT_FILE_OPTION) -> None:
    """Compute owed amounts for one expense described in a JSON file."""
    request = SplitFile.model_validate_json(input.read_text(encoding="utf-8"))
    try:
        splits = compute_splits(
            request.amount,
            request.split_method,
            [
                ParticipantInput(**participant.model_dump())
                for participant in request.participants
            ],
        )
    except DomainError as exc:
        typer.echo(f"Error [{exc.code}]: {exc.message}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Amount: {format_money(request.amount)} ({request.split_method})")
    for item in splits:
        typer.echo(
            f"{item.user_id} paid={format_money(item.paid_amount)} "
            f"owed={format_money(item.owed_amount)} "
            f"net={format_money(item.net_amount)}"
        )


@app.command("simplify")
def simplify(input: Path = INPUT_FILE_OPTION) -> None:
    """Suggest the fewest transfers that settle a JSON list of net balances."""
    entries = [
        BalanceFileEntry.model_validate(item)
        for item in json.loads(input.read_text(encoding="utf-8"))
    ]
    transfers = simplify_debts(
        [NetBalance(user=entry.user, net_amount=entry.net_amount) for entry in entries]
    )
    if not transfers:
        typer.echo("All settled up!")
        return
    for transfer in transfers:
        typer.echo(
            f"{transfer.from_user} -> {transfer.to_user}: "
            f"{format_money(transfer.amount)}"
        )
    typer.echo(f"Total: {format_money(total_transferred(transfers))}")


def main() -> None:
    """Run the splitledger CLI application."""
    app()


if __name__ == "__main__":
    main()
