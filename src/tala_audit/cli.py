"""Typer CLI for Tala-Audit."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="tala-audit", help="Tala-Audit: tamper-evident audit chain service")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the Tala-Audit API server."""
    import uvicorn
    from tala_audit.app import create_app

    console.print(f"[bold green]Starting Tala-Audit on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


async def _verify(tenant_id: str, entity_type: str, entity_id: str):
    from tala_audit.deps import get_audit_service, get_db

    db = get_db()
    await db.init()
    try:
        async with db.get_session() as session:
            return await get_audit_service().verify_entity_chain(
                session, tenant_id, entity_type, entity_id,
            )
    finally:
        await db.close()


async def _scan(tenant_id: str):
    from tala_audit.deps import get_audit_service, get_db

    db = get_db()
    await db.init()
    try:
        async with db.get_session() as session:
            return await get_audit_service().detect_tampering(session, tenant_id)
    finally:
        await db.close()


@app.command()
def verify(
    tenant_id: str = typer.Argument(..., help="Tenant id"),
    entity_type: str = typer.Argument(..., help="Entity type, e.g. JournalEntry"),
    entity_id: str = typer.Argument(..., help="Entity id, e.g. JE-1"),
):
    """Verify one entity's audit chain directly against the database."""
    from tala_audit.audit.hashing import format_timestamp

    verdict = asyncio.run(_verify(tenant_id, entity_type, entity_id))
    if verdict.chain_valid:
        console.print(
            f"[bold green]VALID[/bold green] {len(verdict.records)} record(s) checked"
        )
        return
    console.print(
        f"[bold red]BROKEN[/bold red] at {format_timestamp(verdict.chain_broken_at)} "
        f"(record {verdict.broken_record_id})"
    )
    raise typer.Exit(1)


@app.command()
def scan(
    tenant_id: str = typer.Argument(..., help="Tenant id"),
):
    """Scan a tenant's entire audit history for tampering."""
    from tala_audit.audit.hashing import format_timestamp

    report = asyncio.run(_scan(tenant_id))
    if not report.tampered:
        console.print(f"[bold green]{report.security_status}[/bold green]")
        return

    table = Table(title=f"{report.affected_records} flagged record(s)")
    for column in ("Log ID", "Entity", "Action", "Created", "Stored hash", "Expected hash"):
        table.add_column(column)
    for t in report.tampered:
        table.add_row(
            t.log_id,
            f"{t.entity_type}/{t.entity_id}",
            t.action,
            format_timestamp(t.created_at),
            t.stored_hash[:12],
            t.expected_hash[:12],
        )
    console.print(table)
    console.print(f"[bold red]{report.security_status}[/bold red]")
    raise typer.Exit(1)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check Tala-Audit server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
