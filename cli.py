#!/usr/bin/env python3
"""
CLI principal para sincronizar desired_size de node groups EKS escalados externamente.
"""
import sys
import click
from pathlib import Path
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from config import Config
from desired_sync.actions import BACKENDS, build_action
from desired_sync.discovery import resolve_handle
from desired_sync.errors import (
    ConfigurationMissing,
    ExternalActionFailed,
    StateError,
    StateLocked,
)
from desired_sync.incremental import (
    ChangeDetector,
    HandleLock,
    StateManager,
    SyncStatus,
    force_unlock,
    held_locks,
)
from desired_sync.reconcile import Action, Reconciler, validate_desired
from desired_sync.utils.logger import setup_logger

console = Console()

EXIT_ACTION_FAILED = 1
EXIT_STATE_ERROR = 3


def target_options(func):
    """Opciones comunes para identificar el node group."""
    func = click.option("--region", "-r", help="Región AWS (AWS_REGION)")(func)
    func = click.option("--nodegroup", "-n", help="Nombre del node group (EKS_NODEGROUP_NAME)")(func)
    func = click.option("--cluster", "-c", help="Nombre del cluster EKS (EKS_CLUSTER_NAME)")(func)
    return func


def desired_option(func):
    return click.option(
        "--desired-size",
        "-d",
        type=click.IntRange(min=0),
        default=lambda: Config.DESIRED_SIZE,
        help="desired_size a aplicar (DESIRED_SIZE)",
    )(func)


def _handle(cluster, nodegroup, region):
    try:
        return resolve_handle(cluster, nodegroup, region)
    except ConfigurationMissing as e:
        raise click.UsageError(str(e))


def _require_desired(desired_size):
    if desired_size is None:
        raise click.UsageError("Falta configuración: desired_size (--desired-size / DESIRED_SIZE)")
    return desired_size


def _print_metrics(reconciler):
    table = Table(title="Métricas de la pasada")
    table.add_column("Métrica", style="cyan")
    table.add_column("Cantidad", style="magenta", justify="right")

    for name, value in reconciler.metrics.items():
        table.add_row(name, str(value))

    console.print(table)


def _exit(ctx, reconciler, code):
    """Termina la pasada mostrando métricas en modo verbose."""
    if ctx.obj.get("verbose"):
        _print_metrics(reconciler)
    if code:
        sys.exit(code)


def _state_manager(ctx) -> StateManager:
    try:
        return StateManager(ctx.obj["state_file"])
    except StateError as e:
        console.print(f"[red]Error de estado: {escape(str(e))}[/red]")
        sys.exit(EXIT_STATE_ERROR)


@click.group()
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Archivo de estado (por defecto {Config.STATE_FILE})",
)
@click.option("--verbose", "-v", is_flag=True, help="Logging en nivel INFO")
@click.pass_context
def cli(ctx, state_file, verbose):
    """Aplica desired_size a node groups EKS sólo cuando cambia."""
    ctx.ensure_object(dict)
    state_file = state_file or Config.STATE_FILE
    ctx.obj["state_file"] = state_file
    ctx.obj["lock_dir"] = Path(state_file).parent / "locks"
    ctx.obj["verbose"] = verbose

    setup_logger(level=Config.LOG_LEVEL, log_file=Config.LOG_FILE, verbose=verbose)


@cli.command()
@target_options
@desired_option
@click.option(
    "--backend",
    "-b",
    type=click.Choice(BACKENDS, case_sensitive=False),
    default=lambda: Config.SYNC_BACKEND,
    help="Acción externa: aws CLI o boto3 (SYNC_BACKEND)",
)
@click.option("--force", is_flag=True, help="Reaplicar aunque el valor no haya cambiado")
@click.pass_context
def apply(ctx, cluster, nodegroup, region, desired_size, backend, force):
    """
    Ejecuta una pasada de reconciliación.

    Sube min_size y desired_size en pasadas separadas: EKS puede rechazar
    min_size > desired_size si valida antes de que llegue el nuevo valor.
    """
    handle = _handle(cluster, nodegroup, region)
    desired_size = _require_desired(desired_size)

    try:
        action = build_action(backend)
    except ConfigurationMissing as e:
        raise click.UsageError(str(e))

    reconciler = Reconciler(action, _state_manager(ctx), lock_dir=ctx.obj["lock_dir"])

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Reconciliando {handle}...", total=None)
            result = reconciler.reconcile(handle, desired_size, force=force)
    except ExternalActionFailed as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        console.print("[yellow]El trigger no se actualizó; la próxima pasada lo reintentará.[/yellow]")
        _exit(ctx, reconciler, EXIT_ACTION_FAILED)
    except StateLocked as e:
        console.print(f"[red]Bloqueado: {escape(str(e))}[/red]")
        _exit(ctx, reconciler, EXIT_STATE_ERROR)
    except StateError as e:
        console.print(f"[red]Error de estado: {escape(str(e))}[/red]")
        _exit(ctx, reconciler, EXIT_STATE_ERROR)

    if result.action is Action.NOOP:
        console.print(f"[green]✓[/green] Nada que hacer: {result.reason}")
    else:
        console.print(f"[yellow]Estrategia:[/yellow] {result.reason}")
        console.print(
            f"[bold green]✓ desired_size={result.desired} aplicado a {handle} "
            f"vía {action.name}[/bold green]"
        )

    _exit(ctx, reconciler, 0)


@cli.command()
@target_options
@desired_option
@click.option("--force", is_flag=True, help="Simular una pasada forzada")
@click.pass_context
def plan(ctx, cluster, nodegroup, region, desired_size, force):
    """Muestra qué haría apply, sin invocar nada."""
    handle = _handle(cluster, nodegroup, region)
    desired_size = validate_desired(_require_desired(desired_size), handle)

    detector = ChangeDetector(_state_manager(ctx))
    strategy = detector.get_sync_strategy(handle, desired_size, force=force)

    table = Table(title=f"Plan para '{handle}'")
    table.add_column("Campo", style="cyan")
    table.add_column("Valor", style="magenta")

    recorded = strategy["recorded"]
    table.add_row("Registrado", "-" if recorded is None else str(recorded))
    table.add_row("Deseado", str(strategy["desired"]))
    table.add_row("Estado", strategy["status"].value)
    table.add_row("Acción", "update-nodegroup-config" if strategy["needs_update"] else "ninguna")
    table.add_row("Razón", strategy["reason"])

    console.print(table)

    if strategy["status"] is SyncStatus.IN_SYNC and not force:
        console.print("[green]Sin cambios.[/green]")


@cli.command()
@click.pass_context
def state(ctx):
    """Lista los triggers registrados."""
    records = _state_manager(ctx).list_records()

    if not records:
        console.print("[yellow]No hay triggers registrados[/yellow]")
        return

    table = Table(title="Triggers registrados")
    table.add_column("Cluster", style="cyan")
    table.add_column("Node group", style="cyan")
    table.add_column("Región", style="green")
    table.add_column("desired_size", style="magenta", justify="right")
    table.add_column("Aplicado", style="yellow")
    table.add_column("Backend", style="green")

    for record in records:
        table.add_row(
            record["cluster_name"],
            record["nodegroup_name"],
            record.get("region") or "-",
            str(record["desired_size"]),
            record.get("applied_at") or "-",
            record.get("backend") or "-",
        )

    console.print(table)


@cli.command()
@target_options
@click.option(
    "--backend",
    "-b",
    type=click.Choice(BACKENDS, case_sensitive=False),
    default=lambda: Config.SYNC_BACKEND,
    help="Backend para consultar EKS",
)
@click.pass_context
def describe(ctx, cluster, nodegroup, region, backend):
    """Compara la configuración de escalado real con el trigger registrado."""
    handle = _handle(cluster, nodegroup, region)
    recorded = _state_manager(ctx).get_recorded(handle)

    try:
        scaling = build_action(backend).describe(handle)
    except ExternalActionFailed as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        sys.exit(EXIT_ACTION_FAILED)

    if scaling is None:
        console.print(f"[yellow]El backend '{backend}' no permite consultar el node group[/yellow]")
        return

    table = Table(title=f"Node group '{handle}'")
    table.add_column("Métrica", style="cyan")
    table.add_column("Valor", style="magenta", justify="right")

    table.add_row("Estado", scaling.status or "-")
    table.add_row("min_size", str(scaling.min_size))
    table.add_row("max_size", str(scaling.max_size))
    table.add_row("desired_size (EKS)", str(scaling.desired_size))
    table.add_row("desired_size (trigger)", "-" if recorded is None else str(recorded))

    console.print(table)

    if recorded is not None and recorded != scaling.desired_size:
        console.print(
            "[yellow]El desired_size actual difiere del trigger: "
            "el autoscaler lo ha modificado desde la última aplicación.[/yellow]"
        )


@cli.command()
@target_options
@click.option("--yes", "-y", is_flag=True, help="No pedir confirmación")
@click.pass_context
def forget(ctx, cluster, nodegroup, region, yes):
    """Elimina el trigger de un node group (la próxima pasada lo reaplicará)."""
    handle = _handle(cluster, nodegroup, region)
    state_manager = _state_manager(ctx)

    if not state_manager.get_record(handle):
        console.print(f"[yellow]No hay trigger registrado para {handle}[/yellow]")
        return

    if not (yes or click.confirm(f"¿Olvidar el trigger de {handle}?")):
        return

    try:
        with HandleLock(handle, ctx.obj["lock_dir"]):
            state_manager.forget(handle)
    except StateError as e:
        console.print(f"[red]Error de estado: {escape(str(e))}[/red]")
        sys.exit(EXIT_STATE_ERROR)

    console.print(f"[green]✓ Trigger de {handle} eliminado[/green]")


@cli.command("force-unlock")
@target_options
@click.pass_context
def force_unlock_cmd(ctx, cluster, nodegroup, region):
    """Elimina un lock huérfano de un node group."""
    handle = _handle(cluster, nodegroup, region)

    if force_unlock(handle, ctx.obj["lock_dir"]):
        console.print(f"[green]✓ Lock de {handle} eliminado[/green]")
    else:
        console.print(f"[yellow]{handle} no estaba bloqueado[/yellow]")


@cli.command()
@click.pass_context
def clear(ctx):
    """Limpia todo el estado."""
    locks = held_locks(ctx.obj["lock_dir"])
    if locks:
        for path in locks:
            console.print(f"[red]Lock activo: {escape(str(path))}[/red]")
        console.print("[red]Hay pasadas en curso; espera a que terminen o usa force-unlock[/red]")
        sys.exit(EXIT_STATE_ERROR)

    if click.confirm("¿Deseas limpiar completamente el estado? Todas las pasadas volverán a aplicar"):
        try:
            _state_manager(ctx).clear_state()
        except StateError as e:
            console.print(f"[red]Error de estado: {escape(str(e))}[/red]")
            sys.exit(EXIT_STATE_ERROR)
        console.print("[green]✓ Estado limpiado[/green]")


if __name__ == "__main__":
    cli()
