import logging
import socket

logger = logging.getLogger(__name__)

_PROBE_ADDRESS = ('8.8.8.8', 80)
_LOOPBACK = '127.0.0.1'


def get_local_ip() -> str:
    """Address of the interface used for outbound traffic, loopback if none is routable."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # connect() on UDP sends nothing; it only selects a route
        sock.connect(_PROBE_ADDRESS)
        return sock.getsockname()[0]
    except OSError as e:
        logger.warning(f'Could not determine local ip, using {_LOOPBACK}: {e}')
        return _LOOPBACK
    finally:
        sock.close()
