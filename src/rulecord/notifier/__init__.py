"""
Outbound delivery to the chat network.

``base`` defines the ``Notifier`` protocol the moderation core depends on;
``discord_notifier`` implements it on top of py-cord.
"""
