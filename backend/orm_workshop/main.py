#!/usr/bin/env python3
"""
ORM workshop command line.

Usage:
    orm-workshop serve                  # Run the API with uvicorn
    orm-workshop init-db                # Create and seed every database
    orm-workshop populate-users -c 50   # Insert fake users (write-through)
    orm-workshop cache-stats            # Show cache manager statistics
"""

import asyncio
import logging
from typing import Optional

import typer
import uvicorn
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .api.app import build_cache_manager, init_databases
from .database.fake_data import new_user_dto
from .repositories import UserCacheRepository
from .utils.config import WorkshopConfig, load_config, validate_required_settings

app = typer.Typer(
    help="ORM workshop: SQLAlchemy repositories and Valkey cache strategies",
    add_completion=False,
)
console = Console()


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def get_workshop_config(env_file: Optional[str]) -> WorkshopConfig:
    try:
        config = load_config(env_file)
        validate_required_settings(config)
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1)
    setup_logging(config.workshop_log_level)
    return config


EnvFileOption = typer.Option(None, "--env-file", "-e", help="Path to a .env file")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: API_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: API_PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
    env_file: Optional[str] = EnvFileOption,
):
    """Run the workshop API"""
    config = get_workshop_config(env_file)
    host = host or config.api_host
    port = port or config.api_port

    console.print(Panel.fit(
        f"[bold cyan]ORM WORKSHOP API[/bold cyan]\n"
        f"[dim]http://{host}:{port}/docs[/dim]",
        border_style="cyan",
        box=box.DOUBLE,
    ))
    uvicorn.run(
        "orm_workshop.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=config.workshop_log_level.lower(),
    )


@app.command("init-db")
def init_db(env_file: Optional[str] = EnvFileOption):
    """Create the tables of every database and insert the sample data"""
    config = get_workshop_config(env_file)

    async def run():
        database, async_database, tenant_database = await init_databases(config)
        try:
            return {
                "database": database.get_connection_info(),
                "async_database": async_database.get_connection_info(),
                "tenants": tenant_database.test_connection(),
            }
        finally:
            await async_database.close()
            database.close()
            tenant_database.close()

    info = asyncio.run(run())

    table = Table(title="Databases", box=box.ROUNDED)
    table.add_column("Database", style="cyan")
    table.add_column("Type")
    table.add_column("URL", style="dim")
    for name in ("database", "async_database"):
        table.add_row(name, info[name]["database_type"], info[name]["database_url"])
    for tenant, ok in info["tenants"].items():
        table.add_row(f"tenant:{tenant}", "", "[green]ok[/green]" if ok else "[red]unreachable[/red]")
    console.print(table)
    console.print("[green]✓[/green] Databases initialized")


@app.command("populate-users")
def populate_users(
    count: int = typer.Option(10, "--count", "-c", min=1, help="Number of users to insert"),
    env_file: Optional[str] = EnvFileOption,
):
    """Insert fake users through the write-through user cache"""
    config = get_workshop_config(env_file)

    async def run():
        _, async_database, tenant_database = await init_databases(config)
        tenant_database.close()
        cache_manager = await build_cache_manager(config)
        try:
            repository = UserCacheRepository(
                cache_manager, async_database,
                UserCacheRepository.default_config.with_workshop_config(config),
            )
            return await repository.put_all(new_user_dto() for _ in range(count))
        finally:
            await cache_manager.close()
            await async_database.close()

    users = asyncio.run(run())

    table = Table(title=f"Inserted {len(users)} users", box=box.ROUNDED)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Username")
    table.add_column("Name")
    for user in users[:20]:
        table.add_row(str(user.id), user.username, f"{user.first_name} {user.last_name}")
    console.print(table)


@app.command("cache-stats")
def cache_stats(env_file: Optional[str] = EnvFileOption):
    """Show cache manager statistics and health"""
    config = get_workshop_config(env_file)

    async def run():
        cache_manager = await build_cache_manager(config)
        try:
            return await cache_manager.health_check(), await cache_manager.get_stats()
        finally:
            await cache_manager.close()

    health, stats = asyncio.run(run())

    status_color = "green" if health["status"] == "healthy" else "yellow"
    console.print(f"Cache status: [{status_color}]{health['status']}[/{status_color}]")

    table = Table(title="Cache statistics", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in stats.items():
        if isinstance(value, dict):
            continue
        table.add_row(name, f"{value:.2f}" if isinstance(value, float) else str(value))
    console.print(table)


if __name__ == "__main__":
    app()
