"""py-cord cogs wiring Discord events into the moderation engine."""
