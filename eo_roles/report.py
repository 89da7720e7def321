"""CLI runners: resolve a workspace and render the results with rich."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from eo_roles.models import ROLE_DESCRIPTIONS, DriftType, ResolutionSource, Role, WorkspaceError
from eo_roles.risk.susceptibility import ROLE_SUSCEPTIBILITY, get_susceptibility
from eo_roles.workspace import Workspace, load_workspace, save_workspace

console = Console()

_ROLE_STYLE = {
    Role.HOLON: "cyan",
    Role.PROTOGON: "magenta",
    Role.EMANON: "green",
    Role.MIXED: "dim",
}

_SOURCE_STYLE = {
    ResolutionSource.INFERRED: "white",
    ResolutionSource.ASSERTED: "bold white",
    ResolutionSource.INFERRED_DUE_TO_DRIFT: "bold red",
}


def _styled_role(role: Role) -> str:
    style = _ROLE_STYLE.get(role, "white")
    return f"[{style}]{role.value}[/{style}]"


def _print_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


# ---------------------------------------------------------------------------
# roles
# ---------------------------------------------------------------------------

def print_roles() -> None:
    """Print role descriptions and the susceptibility matrix."""
    for role, info in ROLE_DESCRIPTIONS.items():
        body = info["description"]
        if info["characteristics"]:
            body += "\n\n" + "\n".join(f"- {c}" for c in info["characteristics"])
        console.print(Panel(
            body,
            title=f"{_styled_role(role)}  {info['name']}: {info['short_description']}",
            expand=False,
        ))

    table = Table(title="Susceptibility (risk multiplier by target role)")
    table.add_column("Edge type", style="bold")
    roles = [Role.HOLON, Role.PROTOGON, Role.EMANON]
    for role in roles:
        table.add_column(role.value, justify="right")
    for edge_type in ROLE_SUSCEPTIBILITY:
        table.add_row(
            edge_type.value,
            *(f"{get_susceptibility(role, edge_type).risk_multiplier:.1f}" for role in roles),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# profile
# ---------------------------------------------------------------------------

def run_profile(workspace_file: str, definition_id: str | None, output_format: str) -> None:
    workspace = load_workspace(Path(workspace_file))
    engine = workspace.build_engine()

    definitions = workspace.definitions
    if definition_id is not None:
        definition = workspace.definition(definition_id)
        if definition is None:
            raise WorkspaceError(f"no definition with id {definition_id!r}")
        definitions = [definition]

    resolutions = [
        engine.compute_profile(d, workspace.edges_for(d.id)) for d in definitions
    ]

    if output_format == "json":
        _print_json([r.to_dict() for r in resolutions])
        return

    table = Table(title=f"Effective roles ({len(resolutions)} definitions)")
    table.add_column("Definition", style="bold")
    table.add_column("Effective")
    table.add_column("Source")
    table.add_column("Inferred")
    table.add_column("Conf.", justify="right")
    table.add_column("IW / TF / AR / DT", justify="right")
    table.add_column("Drift")

    for r in resolutions:
        p = r.behavior_profile
        source_style = _SOURCE_STYLE[r.source]
        drift = "-"
        if r.drift is not None:
            color = "red" if r.drift.type is DriftType.HARD else "yellow"
            drift = f"[{color}]{r.drift.type.value}[/{color}]"
        table.add_row(
            escape(r.definition_id),
            _styled_role(r.effective_role),
            f"[{source_style}]{r.source.value}[/{source_style}]",
            _styled_role(r.inferred.role),
            f"{r.inferred.confidence:.2f}",
            f"{p.interpretive_weight:.2f} / {p.temporal_flux:.2f} / "
            f"{p.authority_rigidity:.2f} / {p.dependency_tolerance:.2f}",
            drift,
        )
    console.print(table)


# ---------------------------------------------------------------------------
# suggest
# ---------------------------------------------------------------------------

def run_suggest(workspace_file: str, apply: bool, output_file: str | None) -> int:
    """Suggest assertions for definitions that have none.

    Returns the number of suggestions made.
    """
    workspace = load_workspace(Path(workspace_file))
    engine = workspace.build_engine()

    table = Table(title="Suggested assertions")
    table.add_column("Definition", style="bold")
    table.add_column("Role")
    table.add_column("Confidence", justify="right")
    table.add_column("Reason")

    suggested = 0
    skipped = 0
    for definition in workspace.definitions:
        if engine.get_assertion(definition.id) is not None:
            continue
        suggestion = engine.suggest_assertion(definition, workspace.edges_for(definition.id))
        if suggestion is None:
            skipped += 1
            continue
        suggested += 1
        table.add_row(
            escape(definition.id),
            _styled_role(suggestion.role),
            f"{suggestion.confidence:.2f}",
            escape(suggestion.reason or ""),
        )
        if apply:
            engine.set_assertion(definition.id, suggestion)

    console.print(table)
    console.print(
        f"  {suggested} suggestion(s), {skipped} definition(s) too ambiguous to suggest"
    )

    if apply and suggested:
        target = Path(output_file or workspace_file)
        save_workspace(
            Workspace(
                definitions=workspace.definitions,
                edges=workspace.edges,
                assertions=engine.export_assertions(),
            ),
            target,
        )
        console.print(f"  [green]Stored {suggested} assertion(s) in {escape(str(target))}[/green]")
    return suggested


# ---------------------------------------------------------------------------
# drift
# ---------------------------------------------------------------------------

def run_drift(workspace_file: str, output_format: str) -> int:
    """Report drift for every stored assertion.

    Returns the number of hard drift reports.
    """
    workspace = load_workspace(Path(workspace_file))
    engine = workspace.build_engine()
    reports = engine.detect_drift(workspace.definitions, workspace.edges_for)
    hard = sum(1 for r in reports if r.drift.type is DriftType.HARD)

    if output_format == "json":
        _print_json([r.to_dict() for r in reports])
        return hard

    if not reports:
        console.print(f"[green]No drift across {len(engine)} assertion(s).[/green]")
        return hard

    table = Table(title="Role drift")
    table.add_column("Definition", style="bold")
    table.add_column("Type")
    table.add_column("Asserted")
    table.add_column("Inferred")
    table.add_column("Detail")
    for r in reports:
        color = "red" if r.drift.type is DriftType.HARD else "yellow"
        if r.drift.type is DriftType.HARD:
            detail = "; ".join(
                f"{fc.condition.describe()} (actual: {fc.actual!r})"
                for fc in r.drift.failed_conditions
            )
        else:
            detail = r.drift.message
        table.add_row(
            escape(r.definition_name or r.definition_id),
            f"[{color}]{r.drift.type.value}[/{color}]",
            _styled_role(r.drift.asserted_role),
            _styled_role(r.drift.inferred_role),
            escape(detail),
        )
    console.print(table)
    console.print(f"  {hard} hard, {len(reports) - hard} soft")
    return hard


# ---------------------------------------------------------------------------
# risk
# ---------------------------------------------------------------------------

def run_risk(workspace_file: str, min_risk: float, output_format: str) -> None:
    workspace = load_workspace(Path(workspace_file))
    engine = workspace.build_engine()

    risks = []
    unresolved = 0
    for edge in workspace.edges:
        target = workspace.definition(edge.target_id)
        if target is None:
            unresolved += 1
            continue
        risk = engine.compute_edge_risk(edge, target, workspace.edges_for(target.id))
        if risk.adjusted_risk >= min_risk:
            risks.append(risk)
    risks.sort(key=lambda r: -r.adjusted_risk)

    if output_format == "json":
        _print_json([r.to_dict() for r in risks])
        return

    table = Table(title="Edge risk")
    table.add_column("Edge", style="bold")
    table.add_column("Target role")
    table.add_column("Risk", justify="right")
    table.add_column("Explanation")
    for r in risks:
        style = "red" if r.adjusted_risk >= 2.0 else ("yellow" if r.adjusted_risk > 1.0 else "white")
        table.add_row(
            escape(f"{r.edge.source_id} -{r.edge.type_name}-> {r.edge.target_id}"),
            _styled_role(r.target_role),
            f"[{style}]{r.adjusted_risk:.1f}[/{style}]",
            escape(f"{r.explanation}. {r.role_explanation}"),
        )
    console.print(table)
    if unresolved:
        console.print(
            f"  [yellow]Warning:[/yellow] {unresolved} edge(s) point at unknown definitions"
        )

