"""Community domain enumerations."""

from enum import Enum


class Rank(str, Enum):
    """Member and forum rank, declared from lowest to highest privilege."""

    NEWBIE_VILLAGE = "NEWBIE_VILLAGE"
    DISTINGUISHED_PETTY = "DISTINGUISHED_PETTY"
    QUASI_WEALTHY_VIP = "QUASI_WEALTHY_VIP"
    LIFE_WINNER_S = "LIFE_WINNER_S"
    EARTH_OL_GRADUATE = "EARTH_OL_GRADUATE"

    @property
    def forum_name(self) -> str:
        return FORUM_NAMES[self]

    @property
    def wealth_title(self) -> str:
        return WEALTH_TITLES[self]


FORUM_NAMES: dict[Rank, str] = {
    Rank.EARTH_OL_GRADUATE: "地表頂級投資俱樂部 👑",
    Rank.LIFE_WINNER_S: "人生勝利組研習社 🏆",
    Rank.QUASI_WEALTHY_VIP: "準富豪交流會 💼",
    Rank.DISTINGUISHED_PETTY: "小資族奮鬥基地 ☕",
    Rank.NEWBIE_VILLAGE: "新手村薪水冒險團 🌱",
}

WEALTH_TITLES: dict[Rank, str] = {
    Rank.EARTH_OL_GRADUATE: "地球OL財富畢業證書",
    Rank.LIFE_WINNER_S: "人生勝利組S級玩家卡",
    Rank.QUASI_WEALTHY_VIP: "準富豪VIP登錄證",
    Rank.DISTINGUISHED_PETTY: "尊爵不凡．小資族認證",
    Rank.NEWBIE_VILLAGE: "新手村榮譽村民證",
}


class MemberStatus(str, Enum):
    """Verification state of a member."""

    GENERAL = "GENERAL"
    VERIFIED = "VERIFIED"


class ForumStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class SessionType(str, Enum):
    """How a private chat session came about."""

    DAILY_MATCH = "DAILY_MATCH"
    GROUP_INITIATED = "GROUP_INITIATED"


class SessionStatus(str, Enum):
    """Private chat session state. EXPIRED and TERMINATED are terminal."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE


class VerificationStatus(str, Enum):
    """Progress of a Rank Card verification round trip."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def is_final(self) -> bool:
        return self is not VerificationStatus.PENDING
