"""HTTP adapters: aiohttp route layer and the application host."""
