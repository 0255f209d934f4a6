"""Repository layer: one class per table group, each taking an open aiosqlite connection."""
from rulecord.repositories.audit_repo import AuditLogRepository
from rulecord.repositories.flag_repo import FlagRepository
from rulecord.repositories.guild_config_repo import GuildConfigRepository
from rulecord.repositories.rule_repo import RuleRepository

__all__ = [
    "AuditLogRepository",
    "FlagRepository",
    "GuildConfigRepository",
    "RuleRepository",
]
