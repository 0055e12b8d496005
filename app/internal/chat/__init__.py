from .providers import (
    ChatMisconfigured,
    ChatProvider,
    ChatProviderError,
    build_system_prompt,
    get_chat_provider,
)

__all__ = [
    "ChatMisconfigured",
    "ChatProvider",
    "ChatProviderError",
    "build_system_prompt",
    "get_chat_provider",
]
