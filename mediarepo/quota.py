"""Per-user upload quotas."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Protocol

from .types import NotFoundError, UserStats


@dataclass
class UserQuota:
    glob: str
    max_bytes: int = 0


@dataclass
class QuotaConfig:
    enabled: bool = False
    user_quotas: list[UserQuota] = field(default_factory=list)


class _StatsSource(Protocol):
    def get_user_stats(self, user_id: str) -> UserStats: ...


def _glob_match(pattern: str, subject: str) -> bool:
    """Match with ``*`` as the only wildcard."""
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.fullmatch(regex, subject, re.DOTALL) is not None


def is_user_within_quota(
    metadata_store: _StatsSource, user_id: str, quota_config: QuotaConfig
) -> bool:
    """Whether the user may upload more, by the first quota rule matching them."""
    if not quota_config.enabled:
        return True
    try:
        stats = metadata_store.get_user_stats(user_id)
    except NotFoundError:
        return True
    for quota in quota_config.user_quotas:
        if _glob_match(quota.glob, user_id):
            if quota.max_bytes == 0:
                return True
            return stats.uploaded_bytes < quota.max_bytes
    return True