"""
Database-per-tenant routing.

Each tenant gets its own DatabaseConfig built from a URL template such as
``sqlite:///orm_workshop_{tenant}.db``. On PostgreSQL and MySQL the
tenant id is also used as the schema name, so a template without
``{tenant}`` gives schema-per-tenant on a single server.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, Optional

from sqlalchemy.orm import Session

from ..database.config import DatabaseConfig
from ..database.initializer import DatabaseInitializer
from .tenants import Tenant, get_current_tenant

logger = logging.getLogger(__name__)


class TenantRoutingDatabase:
    """
    Picks the DatabaseConfig of the tenant bound to the current context.
    """

    def __init__(
        self,
        url_template: str,
        echo: bool = False,
        tenants: Optional[Iterable[Tenant]] = None,
    ):
        self.url_template = url_template
        self.echo = echo
        self.tenants = list(tenants or Tenant)
        self._configs: Dict[Tenant, DatabaseConfig] = {
            tenant: DatabaseConfig(
                database_url=url_template.format(tenant=tenant.id),
                echo=echo,
                schema=tenant.id,
            )
            for tenant in self.tenants
        }
        logger.info(f"Tenant routing configured for: {', '.join(t.id for t in self.tenants)}")

    def initialize(self, seed: bool = True) -> None:
        """
        Create every tenant's tables and seed its localized sample data.
        """
        for tenant, config in self._configs.items():
            config.create_tables()
            if seed:
                with config.get_session_context() as session:
                    DatabaseInitializer(tenant).populate_movies(session)
            logger.info(f"Tenant '{tenant.id}' ready ({config.get_connection_info()['database_url']})")

    def get_config(self, tenant: Optional[Tenant] = None) -> DatabaseConfig:
        """
        Raises:
            KeyError: If the tenant is not routed by this instance
        """
        return self._configs[tenant or get_current_tenant()]

    @contextmanager
    def get_session_context(self, tenant: Optional[Tenant] = None) -> Iterator[Session]:
        """
        Session on the given tenant's database, or the current tenant's.
        """
        resolved = tenant or get_current_tenant()
        logger.debug(f"Routing session to tenant '{resolved.id}'")
        with self.get_config(resolved).get_session_context() as session:
            yield session

    def test_connection(self) -> Dict[str, bool]:
        return {tenant.id: config.test_connection() for tenant, config in self._configs.items()}

    def close(self) -> None:
        for config in self._configs.values():
            config.close()
