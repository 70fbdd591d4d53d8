"""Click command modules; each exposes ``register(cli)``."""
