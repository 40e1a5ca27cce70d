from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple

import typer
from typing_extensions import Annotated

from mtreex import MTree, Point, available_metrics
from mtreex import config as mx_config
from mtreex.algo import available_split_policies
from mtreex.datasets import points_of_interest
from mtreex.errors import DimensionMismatch

NO_RESULTS = "No points found within the given radius."


@dataclass
class SearchCLIOptions:
    center: Tuple[float, ...]
    radius: float
    points_path: Path | None = None
    max_node_size: int | None = None
    metric: str | None = None
    split_policy: str | None = None
    check_invariants: bool | None = None
    stats: bool = False


app = typer.Typer(
    add_completion=False,
    pretty_exceptions_enable=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Build a metric tree from named points and run one range query.",
)

_QUERY_PANEL = "Query"
_TREE_PANEL = "Tree controls"


def _parse_center(raw: str) -> Tuple[float, ...]:
    tokens = [token.strip() for token in raw.split(",")]
    if not tokens or any(token == "" for token in tokens):
        raise typer.BadParameter(
            f"expected comma-separated numbers, got '{raw}'", param_hint="--center"
        )
    try:
        return tuple(float(token) for token in tokens)
    except ValueError as exc:
        raise typer.BadParameter(
            f"expected comma-separated numbers, got '{raw}'", param_hint="--center"
        ) from exc


def load_points(path: Path) -> List[Point]:
    """Read ``[{"name": ..., "coords": [...]}, ...]`` into points."""

    try:
        records = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"cannot read points from {path}: {exc}", param_hint="--points") from exc
    if not isinstance(records, list):
        raise typer.BadParameter("points file must hold a JSON list", param_hint="--points")
    points: List[Point] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict) or "coords" not in record:
            raise typer.BadParameter(
                f"record {index} needs a 'coords' field", param_hint="--points"
            )
        try:
            points.append(Point(record["coords"], payload=record.get("name", f"#{index}")))
        except (TypeError, ValueError) as exc:
            raise typer.BadParameter(f"record {index}: {exc}", param_hint="--points") from exc
    return points


def _format_match(point: Point, distance: float) -> str:
    coords = ", ".join(f"{value:g}" for value in point.coords)
    return f"{point.payload} | coords=({coords}) | distance={distance:.6f}"


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    center: Annotated[
        str,
        typer.Option(
            "--center",
            help="Query center as comma-separated coordinates, e.g. 40.71,-74.0.",
            rich_help_panel=_QUERY_PANEL,
        ),
    ],
    radius: Annotated[
        float,
        typer.Option(
            "--radius",
            help="Query radius (non-negative).",
            rich_help_panel=_QUERY_PANEL,
        ),
    ],
    points_path: Annotated[
        Optional[Path],
        typer.Option(
            "--points",
            help="JSON list of {name, coords} records. Defaults to the built-in points of interest.",
            rich_help_panel=_QUERY_PANEL,
        ),
    ] = None,
    max_node_size: Annotated[
        Optional[int],
        typer.Option(
            "--max-node-size",
            help="Leaf capacity (defaults to MTREEX_MAX_NODE_SIZE).",
            rich_help_panel=_TREE_PANEL,
        ),
    ] = None,
    metric: Annotated[
        Optional[str],
        typer.Option(
            "--metric",
            case_sensitive=False,
            help=f"Distance metric, one of {', '.join(available_metrics())}.",
            rich_help_panel=_TREE_PANEL,
        ),
    ] = None,
    split_policy: Annotated[
        Optional[str],
        typer.Option(
            "--split-policy",
            case_sensitive=False,
            help=f"Leaf split policy, one of {', '.join(available_split_policies())}.",
            rich_help_panel=_TREE_PANEL,
        ),
    ] = None,
    check_invariants: Annotated[
        Optional[bool],
        typer.Option(
            "--check-invariants/--no-check-invariants",
            help="Verify covering radii while searching.",
            rich_help_panel=_TREE_PANEL,
        ),
    ] = None,
    stats: Annotated[
        bool,
        typer.Option(
            "--stats",
            help="Print tree statistics after the results.",
            rich_help_panel=_TREE_PANEL,
        ),
    ] = False,
) -> None:
    if ctx.invoked_subcommand is not None:
        return
    if not radius >= 0:
        raise typer.BadParameter("radius must be a non-negative number", param_hint="--radius")
    if metric is not None and metric.lower() not in available_metrics():
        raise typer.BadParameter(f"unknown metric '{metric}'", param_hint="--metric")
    if split_policy is not None and split_policy.lower() not in available_split_policies():
        raise typer.BadParameter(f"unknown split policy '{split_policy}'", param_hint="--split-policy")
    if max_node_size is not None and max_node_size < 1:
        raise typer.BadParameter("must be >= 1", param_hint="--max-node-size")
    options = SearchCLIOptions(
        center=_parse_center(center),
        radius=radius,
        points_path=points_path,
        max_node_size=max_node_size,
        metric=metric.lower() if metric else None,
        split_policy=split_policy.lower() if split_policy else None,
        check_invariants=check_invariants,
        stats=stats,
    )
    run_search(options)


def run_search(options: SearchCLIOptions) -> List[Tuple[Point, float]]:
    points = (
        load_points(options.points_path)
        if options.points_path is not None
        else points_of_interest()
    )
    try:
        tree = MTree.from_points(
            points,
            options.max_node_size,
            options.metric,
            split_policy=options.split_policy,
            check_invariants=options.check_invariants,
        )
    except DimensionMismatch as exc:
        raise typer.BadParameter(str(exc), param_hint="--points") from exc
    try:
        results = tree.search_sorted(list(options.center), options.radius)
    except DimensionMismatch as exc:
        raise typer.BadParameter(str(exc), param_hint="--center") from exc

    if results:
        for point, distance in results:
            typer.echo(_format_match(point, distance))
    else:
        typer.echo(NO_RESULTS)

    if options.stats:
        summary = tree.stats()
        runtime = mx_config.describe_runtime()
        typer.echo(
            f"tree | points={summary.points} leaves={summary.leaves} "
            f"internal={summary.internal_nodes} depth={summary.depth} "
            f"splits={summary.splits} metric={tree.metric.name} "
            f"split_policy={tree.split_policy} log_level={runtime['log_level']}"
        )
    return results


def main() -> None:
    app()


__all__ = ["NO_RESULTS", "SearchCLIOptions", "app", "load_points", "main", "run_search"]
