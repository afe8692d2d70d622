"""py-cord cogs wiring Discord events and commands to the service layer."""
