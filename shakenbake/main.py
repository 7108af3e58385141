import asyncio
import sys

from shakenbake.adapters.base import BaseDestinationAdapter
from shakenbake.adapters.factory import DestinationAdapterFactory
from shakenbake.adapters.http import HttpDestinationAdapter
from shakenbake.config.settings import Settings
from shakenbake.core.errors import ShakeNbakeError
from shakenbake.logging.logger import Log


async def check_connection(adapter: BaseDestinationAdapter) -> bool:
    try:
        return await adapter.test_connection()
    finally:
        if isinstance(adapter, HttpDestinationAdapter):
            await adapter.aclose()


def main() -> int:
    """Entry point: load settings -> build the destination adapter -> check connectivity."""
    settings = Settings()
    Log.configure(settings.log_level)

    adapter = DestinationAdapterFactory.create(settings)
    Log.info(f"Checking connection to destination '{adapter.name}' (env={settings.app_env})")
    try:
        connected = asyncio.run(check_connection(adapter))
    except ShakeNbakeError as exc:
        Log.error(f"Connection check failed [{exc.code.value}]: {exc.message}")
        return 1

    if not connected:
        Log.error(f"Destination '{adapter.name}' rejected the configured credentials")
        return 1
    Log.info(f"Destination '{adapter.name}' is reachable")
    return 0


if __name__ == "__main__":
    sys.exit(main())
