"""Domain layer (pure game logic).

- Keep board rules and the computer opponent here.
- Avoid I/O: no HTTP/FastAPI, no Telegram, no promo stores.
- Randomness is passed in (numpy Generator) so moves are reproducible in tests.
"""
