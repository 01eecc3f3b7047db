# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único donde se construyen repositorios, servicios y el transporte
# de réplica de UN terminal. Facilita:
#   - Inyección de dependencias
#   - Testing (varios terminales en el mismo proceso, cada uno con su
#     carpeta de datos y un hub local compartido)
#   - Cambiar el transporte de réplica sin tocar los servicios
#
# ═══════════════════════════════════════════════════════════════════════════════
# TRANSPORTE DE RÉPLICA
# ═══════════════════════════════════════════════════════════════════════════════
#
#   transport=...         -> se usa tal cual
#   hub=LocalBroadcastHub -> broadcast en proceso (mismo equipo)
#   config.sync_url       -> polling REST contra el relay
#   nada                  -> terminal aislado (sin réplica)
# ==============================================================================

from typing import Optional

from app_stall.config import Config
from app_stall import performance_logger

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia (JSON)
# ═══════════════════════════════════════════════════════════════════════════════
from app_stall.repositories import (
    MenuRepository,
    SalesRepository,
    SettingsRepository,
    AuditRepository,
    OrdersRepository,
    SyncRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from app_stall.services import (
    AuditService,
    CatalogService,
    CartService,
    PricingService,
    SettingsService,
    TokenService,
    LedgerService,
    DrawerService,
    StatsService,
    PrintService,
    SpoolPrinter,
    ReplicationService,
    OrdersService,
    SyncService,
)
from app_stall.transports import (
    LocalBroadcastHub,
    LocalBroadcastTransport,
    ReplicationTransport,
    RestPollingTransport,
)


class AppContainer:
    """
    Contenedor de dependencias de un terminal.

    Uso:
        container = AppContainer(Config(data_dir='/tmp/t1', terminal_id='T1'))
        container.start()
        container.ledger_service.commit('CARD', 'Ravi')
    """

    def __init__(
        self,
        config: Config = None,
        transport: ReplicationTransport = None,
        hub: LocalBroadcastHub = None,
        printer=None
    ):
        """
        Args:
            config: Configuración del terminal (por defecto desde el entorno)
            transport: Transporte de réplica ya construido (opcional)
            hub: Hub local para réplica en proceso (opcional)
            printer: Sink de impresión (por defecto SpoolPrinter)
        """
        self.config = config or Config.from_env()
        self._transport = transport
        self._hub = hub
        self._printer = printer
        self._started = False
        self.reset()

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def menu_repo(self) -> MenuRepository:
        if self._menu_repo is None:
            self._menu_repo = MenuRepository(self.config.data_dir)
        return self._menu_repo

    @property
    def sales_repo(self) -> SalesRepository:
        if self._sales_repo is None:
            self._sales_repo = SalesRepository(self.config.data_dir)
        return self._sales_repo

    @property
    def settings_repo(self) -> SettingsRepository:
        if self._settings_repo is None:
            self._settings_repo = SettingsRepository(self.config.data_dir)
        return self._settings_repo

    @property
    def audit_repo(self) -> AuditRepository:
        if self._audit_repo is None:
            self._audit_repo = AuditRepository(self.config.data_dir)
        return self._audit_repo

    @property
    def orders_repo(self) -> OrdersRepository:
        """Repositorio del backend de pedidos (rol servidor)."""
        if self._orders_repo is None:
            self._orders_repo = OrdersRepository(self.config.data_dir)
        return self._orders_repo

    @property
    def sync_repo(self) -> SyncRepository:
        """Repositorio del relay de réplica (rol servidor)."""
        if self._sync_repo is None:
            self._sync_repo = SyncRepository(self.config.data_dir)
        return self._sync_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo, self.config.terminal_id)
        return self._audit_service

    @property
    def settings_service(self) -> SettingsService:
        if self._settings_service is None:
            self._settings_service = SettingsService(
                self.settings_repo,
                self.audit_service,
                print_hub=self.config.print_hub or None
            )
        return self._settings_service

    @property
    def catalog_service(self) -> CatalogService:
        if self._catalog_service is None:
            self._catalog_service = CatalogService(self.menu_repo, self.audit_service)
        return self._catalog_service

    @property
    def cart_service(self) -> CartService:
        """Carrito de ESTE terminal (solo en memoria)."""
        if self._cart_service is None:
            self._cart_service = CartService(self.catalog_service)
        return self._cart_service

    @property
    def pricing_service(self) -> PricingService:
        if self._pricing_service is None:
            self._pricing_service = PricingService(self.settings_service)
        return self._pricing_service

    @property
    def token_service(self) -> TokenService:
        if self._token_service is None:
            self._token_service = TokenService(self.config.token_policy)
        return self._token_service

    @property
    def print_service(self) -> PrintService:
        if self._print_service is None:
            printer = self._printer or SpoolPrinter(self.config.spool_dir)
            self._print_service = PrintService(self.settings_service, printer)
        return self._print_service

    @property
    def ledger_service(self) -> LedgerService:
        if self._ledger_service is None:
            self._ledger_service = LedgerService(
                self.sales_repo,
                self.cart_service,
                self.pricing_service,
                self.token_service,
                self.audit_service,
                self.config.terminal_id
            )
            self._ledger_service.set_print_service(self.print_service)
        return self._ledger_service

    @property
    def drawer_service(self) -> DrawerService:
        if self._drawer_service is None:
            self._drawer_service = DrawerService(self.ledger_service, self.settings_service)
        return self._drawer_service

    @property
    def stats_service(self) -> StatsService:
        if self._stats_service is None:
            self._stats_service = StatsService(self.ledger_service)
        return self._stats_service

    @property
    def orders_service(self) -> OrdersService:
        if self._orders_service is None:
            self._orders_service = OrdersService(self.orders_repo)
        return self._orders_service

    @property
    def sync_service(self) -> SyncService:
        if self._sync_service is None:
            self._sync_service = SyncService(self.sync_repo)
        return self._sync_service

    # =========================================================================
    # RÉPLICA
    # =========================================================================

    @property
    def transport(self) -> Optional[ReplicationTransport]:
        if self._transport is None:
            namespace = self.settings_service.namespace()
            if self._hub is not None:
                self._transport = LocalBroadcastTransport(
                    self._hub, namespace, self.config.terminal_id
                )
            elif self.config.sync_url:
                self._transport = RestPollingTransport(
                    self.config.sync_url, namespace, self.config.terminal_id
                )
        return self._transport

    @property
    def replication_service(self) -> Optional[ReplicationService]:
        """None si el terminal trabaja aislado."""
        if self._replication_service is None and self.transport is not None:
            self._replication_service = ReplicationService(
                self.transport,
                self.ledger_service,
                self.catalog_service,
                self.settings_service,
                self.print_service,
                self.audit_service
            )
        return self._replication_service

    # =========================================================================
    # CICLO DE VIDA
    # =========================================================================

    def start(self) -> 'AppContainer':
        """
        Conecta la réplica y, si el transporte es REST, arranca el polling.
        Llamar más de una vez no tiene efecto.
        """
        if self._started:
            return self
        if self.config.profiling:
            performance_logger.configure(self.config.logs_dir)
        replication = self.replication_service
        if replication is not None:
            replication.start()
            if isinstance(self.transport, RestPollingTransport) and self.config.sync_interval > 0:
                self.transport.start(self.config.sync_interval)
        self._started = True
        return self

    def close(self) -> None:
        if self._replication_service is not None:
            self._replication_service.close()
        self._started = False

    def reset(self) -> None:
        """
        Reinicia todas las instancias (no toca el transporte inyectado).
        Útil para testing o para recargar datos.
        """
        self._menu_repo = None
        self._sales_repo = None
        self._settings_repo = None
        self._audit_repo = None
        self._orders_repo = None
        self._sync_repo = None

        self._audit_service = None
        self._settings_service = None
        self._catalog_service = None
        self._cart_service = None
        self._pricing_service = None
        self._token_service = None
        self._print_service = None
        self._ledger_service = None
        self._drawer_service = None
        self._stats_service = None
        self._orders_service = None
        self._sync_service = None
        self._replication_service = None


# Contenedor global: solo para el punto de entrada WSGI
_container: Optional[AppContainer] = None


def get_container(config: Config = None) -> AppContainer:
    """
    Obtiene el contenedor global (lo crea en la primera llamada).

    Args:
        config: Configuración (solo se usa en la primera llamada)
    """
    global _container
    if _container is None:
        _container = AppContainer(config)
    return _container


def reset_container() -> None:
    """Cierra y elimina el contenedor global (útil para tests)."""
    global _container
    if _container is not None:
        _container.close()
        _container = None
