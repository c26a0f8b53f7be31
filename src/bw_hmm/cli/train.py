"""
Training CLI commands.

Commands for estimating an HMM from an observation sequence.
"""

from pathlib import Path
from typing import List, Optional
import time

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from ..config import get_config
from ..hmm import DiscreteHMM
from ..train import ModelPersistence
from .errors import handle_cli_error
from .utils import infer_n_symbols, parameter_tables, parse_observations, read_observation_text

console = Console()

# Built-in weather example: 2 hidden states, 3 symbols
EXAMPLE_OBSERVATIONS = "0 0 1 1 2 0 0 1 2 2 1 0 0 0 1 1 2 1 0 0 1 2 0 0 1"
EXAMPLE_SETTINGS = {
    "n_states": 2,
    "n_symbols": 3,
    "max_iter": 100,
    "epsilon": 1e-7,
    "seed": 7
}


def run_training(observations: List[int],
                 n_states: int,
                 n_symbols: Optional[int],
                 max_iter: Optional[int],
                 epsilon: Optional[float],
                 seed: Optional[int],
                 output_dir: Optional[Path] = None,
                 name: str = "model",
                 force: bool = False,
                 show_log: bool = True) -> DiscreteHMM:
    """Train an estimator, print progress and results, optionally save it."""
    n_symbols = infer_n_symbols(observations, n_symbols)

    model = DiscreteHMM(observations, n_states, n_symbols,
                        max_iter=max_iter, epsilon=epsilon, seed=seed)

    console.print(Panel.fit(
        f"[bold]Baum-Welch Training[/bold]\n"
        f"Observations: {model.T}\n"
        f"States (N): {model.n_states}\n"
        f"Symbols (M): {model.n_symbols}\n"
        f"Max Iterations: {model.max_iter}\n"
        f"Epsilon: {model.epsilon}\n"
        f"Seed: {model.seed}",
        border_style="blue"
    ))

    start_time = time.time()

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        console=console
    ) as progress:
        task = progress.add_task("Training...", total=model.max_iter)

        for record in model.iter_training():
            if show_log:
                style = "green" if record.done else ("cyan" if record.iteration == 0 else "white")
                progress.console.print(f"[{style}]{record.message}[/{style}]")
            progress.update(task, completed=record.iteration + 1)

        progress.update(task, completed=model.max_iter)

    elapsed = time.time() - start_time

    status = "[green]Converged ✓[/green]" if model.converged else "[yellow]Max Iters Reached[/yellow]"
    console.print(Panel.fit(
        f"[bold]Results[/bold]\n"
        f"Final log P(O|λ): {model.log_likelihood_history[-1]:.4f}\n"
        f"Iterations: {model.iterations}\n"
        f"Status: {status}\n"
        f"Time: {elapsed:.2f}s",
        border_style="green" if model.converged else "yellow"
    ))

    for table in parameter_tables(model.pi, model.A, model.B):
        console.print(table)

    if output_dir is not None:
        persistence = ModelPersistence(str(output_dir))
        model_path, _ = persistence.save_model(
            name, model, metadata={'training_time': elapsed}, overwrite=force
        )
        console.print(f"[green]Model saved to: {model_path}[/green]")

    return model


def train_command(
    ctx: typer.Context,
    observations: str = typer.Argument(
        ...,
        help="Symbols separated by spaces/commas, or @file to read them from a file"
    ),
    n_states: Optional[int] = typer.Option(
        None,
        "--states",
        "-n",
        help="Number of hidden states (default: config hmm.n_states)"
    ),
    n_symbols: Optional[int] = typer.Option(
        None,
        "--symbols",
        "-m",
        help="Number of observation symbols (default: max symbol + 1)"
    ),
    max_iter: Optional[int] = typer.Option(
        None,
        "--max-iter",
        "-i",
        help="Maximum EM iterations"
    ),
    epsilon: Optional[float] = typer.Option(
        None,
        "--epsilon",
        "-e",
        help="Convergence threshold on the log-likelihood change"
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        "-s",
        help="Seed for parameter initialization"
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory to save the trained model",
        file_okay=False,
        dir_okay=True
    ),
    name: str = typer.Option(
        "model",
        "--name",
        help="Name under which the model is saved"
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing saved model"
    )
):
    """
    Estimate HMM parameters from an observation sequence.

    Examples:
    ```
    bw-hmm train "0 0 1 1 0 0 1 1" --states 2
    bw-hmm train @sequence.txt -n 3 -m 4 --seed 7 --output models/
    ```
    """
    try:
        parsed = parse_observations(read_observation_text(observations))
        if n_states is None:
            n_states = get_config('hmm', 'n_states')
        run_training(parsed, n_states, n_symbols, max_iter, epsilon, seed,
                     output_dir=output_dir, name=name, force=force)
    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "train", ctx.meta.get("debug", False))


def example_command(
    ctx: typer.Context,
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory to save the trained model",
        file_okay=False,
        dir_okay=True
    )
):
    """Run the built-in weather example (N=2, M=3, seed 7)."""
    try:
        console.print(f"[bold]Observations:[/bold] {EXAMPLE_OBSERVATIONS}")
        run_training(parse_observations(EXAMPLE_OBSERVATIONS),
                     output_dir=output_dir, name="weather_example", force=True,
                     **EXAMPLE_SETTINGS)
    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "example", ctx.meta.get("debug", False))
