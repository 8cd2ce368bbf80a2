import asyncio
from typing import List, Tuple

from kafprobe.errors import ConnectivityError


def split_address(address: str) -> Tuple[str, int]:
    host, _, port = address.rpartition(":")
    if not host or not port.isdigit():
        raise ConnectivityError(f"invalid broker address {address!r}")

    return host.strip("[]"), int(port)


async def check_connectivity(
    brokers: List[str],
    timeout: float = 2.0,
) -> str:
    """
    Open (and immediately close) a TCP connection to each broker in turn,
    returning the first address that accepts. Raises ConnectivityError
    carrying the last socket error when none do.
    """
    if len(brokers) == 0:
        raise ConnectivityError("no brokers configured")

    last_error: Exception | None = None
    for broker in brokers:
        host, port = split_address(broker)

        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=timeout,
            )

        except (OSError, asyncio.TimeoutError) as err:
            last_error = err
            continue

        writer.close()
        try:
            await writer.wait_closed()

        except OSError:
            pass

        return broker

    raise ConnectivityError(
        f"unable to connect to any broker ({', '.join(brokers)}): {last_error!r}"
    )
