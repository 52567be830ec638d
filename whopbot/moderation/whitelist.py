"""Set-backed user id whitelists."""

from loguru import logger

from whopbot.config.schema import split_id_list


class WhitelistRegistry:
    """
    A named set of user ids.

    Two instances exist per process: the cooldown whitelist (exempt from
    command cooldowns) and the admin whitelist (may run admin-only commands).
    Membership lives in memory only and is seeded once at startup.
    """

    def __init__(self, name: str, initial: list[str] | None = None):
        self.name = name
        # dict keeps insertion order for list()
        self._members: dict[str, None] = {}
        for user_id in initial or []:
            self._members[user_id] = None

        logger.info(f"{self.name} whitelist initialized with {len(self._members)} users")

    @classmethod
    def from_env_value(cls, name: str, value: str) -> "WhitelistRegistry":
        """Create a registry from a comma-separated id list."""
        return cls(name, split_id_list(value))

    def is_member(self, user_id: str) -> bool:
        return user_id in self._members

    def add(self, user_id: str) -> None:
        if user_id not in self._members:
            self._members[user_id] = None
            logger.info(f"Added {user_id} to {self.name} whitelist")

    def remove(self, user_id: str) -> bool:
        """
        Remove a user.

        Returns:
            True if the user was a member.
        """
        if user_id not in self._members:
            return False
        del self._members[user_id]
        logger.info(f"Removed {user_id} from {self.name} whitelist")
        return True

    def list(self) -> list[str]:
        return list(self._members)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._members

    def __len__(self) -> int:
        return len(self._members)
