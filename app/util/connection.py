from aiohttp import ClientSession

_client_session: ClientSession | None = None


async def get_connection() -> ClientSession:
    """Shared aiohttp session for all outbound calls (catalog and chat)."""
    global _client_session
    if _client_session is None or _client_session.closed:
        _client_session = ClientSession()
    return _client_session


async def close_connection():
    global _client_session
    if _client_session is not None and not _client_session.closed:
        await _client_session.close()
    _client_session = None
