"""Plugin modules (cogs) hosted by the economy runtime."""
