"""CLI subcommands, loaded lazily by onion_tears.cli."""
