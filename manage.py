# manage.py

# --- Load .env sebelum settings dibaca ---
from dotenv import load_dotenv
load_dotenv()
# ----------------------------------------------------

import asyncio
import typer
import uvicorn
from typing import List, Optional
from typing_extensions import Annotated

# NOTE: File ini berfungsi seperti manage.py di Flask, tapi untuk project FastAPI.
# Kita menggunakan Typer untuk command CLI operator.

cli = typer.Typer(
    help="Manajemen CLI untuk mobile order sync."
)


def _run_with_services(handler, operator: Optional[str] = None):
    """Jalankan handler(services) dengan satu database session."""
    from app.database import AsyncSessionLocal, init_models
    from app.services import create_service_registry
    from app.logging_config import setup_logging
    from app.config import settings

    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    async def runner():
        if settings.AUTO_CREATE_TABLES:
            await init_models()
        async with AsyncSessionLocal() as session:
            services = create_service_registry(
                db_session=session,
                config=settings.model_dump(),
                current_user=operator or settings.DEFAULT_OPERATOR
            )
            return await handler(services)

    return asyncio.run(runner())


def _echo_results(results):
    for result in results:
        color = typer.colors.GREEN if result.status in ('imported', 'rejected') else typer.colors.YELLOW
        if result.status == 'error':
            color = typer.colors.RED
        line = f"{result.order_id}: {result.status}"
        if result.code:
            line += f" (code {result.code})"
        if result.message:
            line += f" - {result.message}"
        typer.secho(line, fg=color)


# --- Database Commands ---

@cli.command()
def init_db():
    """
    Inisialisasi database dan membuat semua tabel.
    """
    from app.database import init_models

    async def create_tables():
        typer.echo("Membuat semua tabel sesuai models...")
        await init_models()
        typer.secho("✅ Database berhasil diinisialisasi.", fg=typer.colors.GREEN)

    asyncio.run(create_tables())


# --- Import Commands ---

@cli.command()
def pending(
    sales_rep_id: Annotated[Optional[str], typer.Option(help="Hanya order dari sales rep ini.")] = None
):
    """
    Tampilkan pending orders per sales rep.
    """
    async def show(services):
        groups = await services.grouping_service.get_groups()
        if sales_rep_id:
            groups = [group for group in groups if group.sales_rep_id == sales_rep_id]
        if not groups:
            typer.echo("Tidak ada pending order.")
            return
        for group in groups:
            typer.secho(
                f"{group.sales_rep_name or group.sales_rep_id}: {group.pending_orders_count} order(s), "
                f"{group.visits_count} visit(s), total {group.total_value:.2f}, "
                f"{group.orders_with_issues} with issues",
                bold=True
            )
            for order in group.orders:
                origin = " [ledger]" if order.origin == 'ledger' else ""
                typer.echo(f"  {order.id}  #{order.code}  {order.customer_name}  {order.total:.2f}{origin}")

    _run_with_services(show)


@cli.command()
def import_orders(
    order_ids: Annotated[Optional[List[str]], typer.Argument(help="ID order yang akan di-import.")] = None,
    all_pending: Annotated[bool, typer.Option("--all", help="Import semua pending order.")] = False,
    operator: Annotated[Optional[str], typer.Option(help="Nama operator.")] = None
):
    """
    Import order ke canonical ledger.
    """
    async def run_import(services):
        workbench = services.create_workbench()
        await workbench.refresh()
        if all_pending:
            workbench.select_all()
        else:
            for order_id in order_ids or []:
                workbench.toggle_order(order_id)
            skipped = set(order_ids or []) - set(workbench.selected_order_ids)
            for order_id in sorted(skipped):
                typer.secho(f"{order_id}: tidak ada di pending orders", fg=typer.colors.YELLOW)
        if not workbench.selected_order_ids:
            typer.echo("Tidak ada order yang dipilih.")
            return
        results = await workbench.import_selected()
        _echo_results(results)
        if workbench.last_report:
            typer.echo(services.import_report_service.render_text(workbench.last_report))

    _run_with_services(run_import, operator)


@cli.command()
def reject_orders(
    order_ids: Annotated[List[str], typer.Argument(help="ID order yang akan ditolak.")],
    operator: Annotated[Optional[str], typer.Option(help="Nama operator.")] = None
):
    """
    Tolak order (terminal, tidak bisa dibatalkan).
    """
    async def run_reject(services):
        results = await services.import_service.reject_selected(order_ids)
        _echo_results(results)
        if services.import_service.last_message:
            typer.echo(services.import_service.last_message)

    _run_with_services(run_reject, operator)


# --- Reconciliation Commands ---

@cli.command()
def detect_orphans():
    """
    Tampilkan orphan orders di ledger.
    """
    async def show(services):
        orphans = await services.reconciliation_service.detect_orphans()
        if not orphans:
            typer.secho("✅ Tidak ada orphan order.", fg=typer.colors.GREEN)
            return
        for orphan in orphans:
            typer.echo(f"{orphan.id}  #{orphan.code}  {orphan.customer_name}  {orphan.total:.2f}")
        typer.secho(f"{len(orphans)} orphan order(s).", fg=typer.colors.YELLOW)

    _run_with_services(show)


@cli.command()
def fix_orphans(
    order_ids: Annotated[Optional[List[str]], typer.Argument(help="ID orphan; kosong = semua.")] = None,
    operator: Annotated[Optional[str], typer.Option(help="Nama operator.")] = None
):
    """
    Kembalikan orphan orders ke pending workflow.
    """
    from app.services.exceptions import ReconciliationError

    async def run_fix(services):
        try:
            result = await services.reconciliation_service.fix_orphans(order_ids or None)
        except ReconciliationError as e:
            typer.secho(f"🔥 Gagal: {e.message}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        typer.secho(result.message or f"{result.fixed} fixed", fg=typer.colors.GREEN)

    _run_with_services(run_fix, operator)


# --- Sync Log Commands ---

@cli.command()
def sync_stats(
    limit: Annotated[int, typer.Option(help="Jumlah log terakhir yang ditampilkan.")] = 10
):
    """
    Statistik sinkronisasi dan log terbaru.
    """
    async def show(services):
        stats = await services.sync_log_service.stats()
        typer.echo(f"Total imported : {stats.total_imported}")
        typer.echo(f"Today imported : {stats.today_imported}")
        typer.echo(f"Failed         : {stats.failed_imports}")
        typer.echo(f"Last import    : {stats.last_import_timestamp or '-'}")
        for log in await services.sync_log_service.recent(limit):
            typer.echo(
                f"  {log.created_at:%Y-%m-%d %H:%M:%S}  {log.event_type:<8} {log.data_type:<14} "
                f"{log.status:<9} {log.records_count}  {log.sales_rep_id or ''}"
            )

    _run_with_services(show)


@cli.command()
def clear_sync_logs(
    yes: Annotated[bool, typer.Option("--yes", help="Lewati konfirmasi.")] = False
):
    """
    Hapus semua sync log.
    """
    if not yes:
        typer.confirm("Hapus semua sync log?", abort=True)

    async def run_clear(services):
        deleted = await services.sync_log_service.clear()
        typer.secho(f"✅ {deleted} sync log dihapus.", fg=typer.colors.GREEN)

    _run_with_services(run_clear)


# --- Server Commands ---

@cli.command()
def run(
    host: str = "127.0.0.1",
    port: int = 8000,
    reload: bool = True
):
    """
    Menjalankan development server Uvicorn.
    """
    typer.echo(f"🚀 Menjalankan server di http://{host}:{port}")
    # Kita menunjuk ke factory 'app' di dalam file 'main.py'
    uvicorn.run("main:app", host=host, port=port, reload=reload, factory=True)


if __name__ == "__main__":
    cli()
