from app.core.settings import settings
from observability import configure_logging
from signing import ensure_serialized, get_key_store
from wallet import WalletBridge, WalletOrchestrator


class Container:
    def __init__(self):
        # Observability
        configure_logging(settings.WALLET_LOG_LEVEL, service_name=settings.WALLET_SERVICE_NAME)

        # Key store
        self.key_store = ensure_serialized(
            get_key_store(),
            timeout=settings.WALLET_AUTH_TIMEOUT_SEC,
            busy_policy=settings.WALLET_BUSY_POLICY.value,
        )

        # Wallet
        self.orchestrator = WalletOrchestrator(self.key_store, key_id=settings.WALLET_KEY_ID)
        self.bridge = WalletBridge(self.orchestrator, default_chain_id=settings.WALLET_CHAIN_ID)


global_container = Container()
