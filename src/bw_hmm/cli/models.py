"""
Saved model CLI commands.

Commands for inspecting estimators stored with ``bw-hmm train --output``.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..train import ModelPersistence
from .errors import handle_cli_error, validate_models_directory
from .utils import parameter_tables

console = Console()

models_app = typer.Typer(
    name="models",
    help="Saved model commands"
)


@models_app.command("list")
def list_models(
    ctx: typer.Context,
    models_dir: Path = typer.Argument(
        ...,
        help="Directory containing saved models"
    )
):
    """List saved models with their training summary."""
    try:
        validate_models_directory(models_dir)
        models_info = ModelPersistence(str(models_dir)).list_available_models()

        table = Table(title=f"Models in {models_dir}")
        table.add_column("Name", style="cyan")
        table.add_column("N", justify="right")
        table.add_column("M", justify="right")
        table.add_column("Iterations", justify="right")
        table.add_column("Converged")
        table.add_column("log P(O|λ)", justify="right", style="magenta")

        for info in models_info:
            ll = info.get('final_log_likelihood')
            table.add_row(
                info['name'],
                str(info.get('n_states', '?')),
                str(info.get('n_symbols', '?')),
                str(info.get('iterations', '?')),
                "✓" if info.get('converged') else "✗",
                f"{ll:.4f}" if isinstance(ll, (int, float)) else "?"
            )

        console.print(table)
    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "models list", ctx.meta.get("debug", False))


@models_app.command("show")
def show_model(
    ctx: typer.Context,
    models_dir: Path = typer.Argument(
        ...,
        help="Directory containing saved models"
    ),
    name: str = typer.Argument(
        ...,
        help="Model name"
    )
):
    """Show the parameters of a saved model."""
    try:
        validate_models_directory(models_dir)
        model, metadata = ModelPersistence(str(models_dir)).load_model(name)

        console.print(Panel.fit(
            f"[bold]{metadata.get('name', name)}[/bold]\n"
            f"States (N): {model.n_states}\n"
            f"Symbols (M): {model.n_symbols}\n"
            f"Sequence length: {model.T}\n"
            f"Iterations: {model.iterations}\n"
            f"Status: {model.status.value}\n"
            f"Saved at: {metadata.get('saved_at', 'unknown')}",
            border_style="blue"
        ))

        for table in parameter_tables(model.pi, model.A, model.B):
            console.print(table)
    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "models show", ctx.meta.get("debug", False))
